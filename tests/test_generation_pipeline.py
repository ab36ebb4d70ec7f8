"""
Tests for the generation pipeline

Must:
- Run loader -> parsers -> merge -> resolver -> serializer end to end
- Write either a complete document or nothing
- Produce identical bytes for identical inputs
"""

import json

import pytest

from core.domain.definitions import ToolMetadata
from core.errors import DuplicateDefinitionError, EmptyDefinitionSet
from core.services.generation_pipeline import (
    generate_from_api_description,
    generate_from_argument_list,
    generate_from_nested_schema,
)

GLOBAL_OPTIONS = [
    {"option": "host", "shorthand": "H", "value_type": "list", "description": "Daemon socket to connect to"},
    {"option": "tls", "value_type": "bool", "default_value": "false", "description": "Use TLS"},
    {"option": "debug", "shorthand": "D", "value_type": "bool", "description": "Enable debug mode"},
]


def _command(command, option):
    return {
        "command": command,
        "short": f"{command} short help",
        "options": [{"option": option, "value_type": "string", "description": f"{option} option"}],
        "inherited_options": GLOBAL_OPTIONS,
    }


@pytest.fixture
def docker_folder(tmp_path, write_yaml):
    write_yaml("docs/docker_container_run.yaml", _command("docker container run", "name"))
    write_yaml("docs/docker_container_ls.yaml", _command("docker container ls", "filter"))
    write_yaml("docs/docker_image_ls.yaml", _command("docker image ls", "format"))
    write_yaml("docs/docker_image.yaml", {"command": "docker image", "cname": ["docker image ls"]})
    return tmp_path / "docs"


class TestArgumentListPipeline:
    """Test the argument-list family end to end"""

    def test_document_is_written(self, settings, docker_metadata, docker_folder):
        """Should build, merge and save Docker.json"""

        result = generate_from_argument_list(settings=settings, metadata=docker_metadata, location=docker_folder)

        assert result.output_path == settings.output_folder / "Docker.json"
        assert result.summary.tasks == 3
        assert result.summary.common_task_property_sets == 1
        assert result.summary.common_task_properties == 0

        document = json.loads(result.output_path.read_text(encoding="utf-8"))
        assert [t["name"] for t in document["tasks"]] == ["ContainerLs", "ContainerRun", "ImageLs"]
        assert document["references"] == [str(docker_folder)]
        common = document["commonTaskPropertySets"][0]
        assert [p["name"] for p in common["properties"]] == ["Host", "Tls", "Debug"]
        for task in document["tasks"]:
            assert task["commonPropertySets"] == ["CommonSet1"]
            assert len(task["settingsClass"]["properties"]) == 1
            assert task["settingsClass"]["tool"] == "Docker"

    def test_runs_are_deterministic(self, settings, docker_metadata, docker_folder, tmp_path):
        """Should write identical bytes for identical inputs"""

        first = generate_from_argument_list(
            settings=settings, metadata=docker_metadata, location=docker_folder, output_folder=tmp_path / "a"
        )
        second = generate_from_argument_list(
            settings=settings, metadata=docker_metadata, location=docker_folder, output_folder=tmp_path / "b"
        )

        assert first.output_path.read_bytes() == second.output_path.read_bytes()

    def test_exclusions_reach_the_loader(self, settings, docker_metadata, docker_folder):
        """Should drop excluded definitions before parsing"""

        result = generate_from_argument_list(
            settings=settings,
            metadata=docker_metadata,
            location=docker_folder,
            excluded_names=["docker_image_ls"],
        )

        assert [t.name for t in result.tool.tasks] == ["ContainerLs", "ContainerRun"]

    def test_everything_excluded_writes_nothing(self, settings, docker_metadata, docker_folder):
        """Should fail before the serializer runs"""

        with pytest.raises(EmptyDefinitionSet):
            generate_from_argument_list(
                settings=settings,
                metadata=docker_metadata,
                location=docker_folder,
                excluded_names=["docker_container_run", "docker_container_ls", "docker_image_ls", "docker_image"],
            )

        assert not settings.output_folder.exists()


class TestSchemaPipelines:
    """Test the API-description and nested-schema families end to end"""

    def test_api_duplicate_writes_nothing(self, settings, write_yaml):
        """Should abort without producing a document"""

        location = write_yaml(
            "api.yaml",
            {
                "swagger": "2.0",
                "paths": {"/a": {"get": {"operationId": "fetch"}}, "/b": {"get": {"operationId": "fetch"}}},
            },
        )

        with pytest.raises(DuplicateDefinitionError):
            generate_from_api_description(settings=settings, metadata=ToolMetadata(name="Demo"), location=location)

        assert not (settings.output_folder / "Demo.json").exists()

    def test_api_description_document(self, settings, write_yaml):
        """Should write one task per operation"""

        location = write_yaml(
            "api.yaml",
            {
                "openapi": "3.0.0",
                "info": {"title": "Demo API"},
                "paths": {
                    "/items": {
                        "get": {
                            "operationId": "listItems",
                            "parameters": [{"name": "limit", "in": "query", "schema": {"type": "integer"}}],
                        }
                    }
                },
            },
        )

        result = generate_from_api_description(
            settings=settings, metadata=ToolMetadata(name="Demo"), location=location
        )

        document = json.loads(result.output_path.read_text(encoding="utf-8"))
        assert document["help"] == "Demo API"
        assert [t["name"] for t in document["tasks"]] == ["ListItems"]

    def test_nested_schema_document(self, settings, write_yaml):
        """Should write tasks, data classes and lifted properties"""

        location = write_yaml(
            "schema.yaml",
            {
                "properties": {
                    "install": {"properties": {"tls": {"$ref": "#/definitions/Tls"}, "wait": {"type": "boolean"}}},
                    "upgrade": {"properties": {"tls": {"$ref": "#/definitions/Tls"}}},
                },
                "definitions": {"Tls": {"type": "object", "properties": {"cert": {"type": "string"}}}},
            },
        )

        result = generate_from_nested_schema(
            settings=settings, metadata=ToolMetadata(name="Helm", pathExecutable="helm"), location=location
        )

        assert result.output_path.name == "Helm.json"
        assert result.summary.tasks == 2
        assert result.summary.data_classes == 1
        assert [p.name for p in result.tool.common_task_properties] == ["Tls"]
        document = json.loads(result.output_path.read_text(encoding="utf-8"))
        assert document["dataClasses"][0]["tool"] == "Helm"
        assert document["tasks"][0]["commonProperties"] == ["Tls"]
