"""
Tests for the model builder

Must:
- Enforce name uniqueness for tasks, data classes and enumerations
- Run parsers sequentially and release each one on every exit path
- Lift shared property blocks before single shared properties
"""

import pytest

from core.domain.definitions import ToolMetadata
from core.domain.models import DataClass, Enumeration, Property, SettingsClass, Task
from core.errors import DuplicateDefinitionError
from core.interfaces.parser import SpecificationParser
from core.services.model_builder import (
    MergePolicy,
    add_property,
    build_tool,
    create_tool,
    merge_common_properties,
    register_data_class,
    register_enumeration,
    register_task,
)


def _prop(name, type_="string", help_=None):
    return Property(name=name, type=type_, help=help_ or f"{name} help")


def _task(name, *props):
    return Task(name=name, settings_class=SettingsClass(name=f"{name}Settings", properties=list(props)))


@pytest.fixture
def tool():
    return create_tool(ToolMetadata(name="Demo", path_executable="demo"))


class TestRegistration:
    """Test name uniqueness"""

    def test_create_tool_copies_metadata(self):
        """Should copy every metadata field onto the tool"""

        metadata = ToolMetadata(
            name="Demo",
            help="Demo tool",
            officialUrl="https://demo.example",
            license=["MIT"],
            packageId="demo.tool",
            packageExecutable="demo.exe",
            environmentExecutable="DEMO_EXE",
            customExecutable=True,
        )

        tool = create_tool(metadata)

        assert tool.official_url == "https://demo.example"
        assert tool.package_id == "demo.tool"
        assert tool.environment_executable == "DEMO_EXE"
        assert tool.custom_executable is True
        assert tool.tasks == []

    def test_duplicate_task_raises(self, tool):
        """Should reject a second task with the same name"""

        register_task(tool, _task("Build"))

        with pytest.raises(DuplicateDefinitionError) as info:
            register_task(tool, _task("Build"))
        assert info.value.kind == "Task"

    def test_types_share_one_namespace(self, tool):
        """Should reject an enumeration named like a data class"""

        register_data_class(tool, DataClass(name="Mode"))

        with pytest.raises(DuplicateDefinitionError):
            register_enumeration(tool, Enumeration(name="Mode", values=["a"]))
        with pytest.raises(DuplicateDefinitionError):
            register_data_class(tool, DataClass(name="Mode"))

    def test_add_property_override_replaces_in_place(self):
        """Should replace an earlier property only when overriding"""

        settings = SettingsClass(name="S", properties=[_prop("A"), _prop("B")])

        add_property(settings, _prop("A", "bool"), override=True)

        assert [(p.name, p.type) for p in settings.properties] == [("A", "bool"), ("B", "string")]
        with pytest.raises(DuplicateDefinitionError):
            add_property(settings, _prop("B"))

    def test_property_collision_names_the_class(self):
        """Should report the owning class rather than a tool"""

        settings = SettingsClass(name="DemoBuildSettings", properties=[_prop("Tag")])

        with pytest.raises(DuplicateDefinitionError) as info:
            add_property(settings, _prop("Tag"))

        assert info.value.scope == "class"
        assert info.value.container == "DemoBuildSettings"
        assert str(info.value) == "Property 'Tag' is already defined in class 'DemoBuildSettings'"

    def test_task_collision_names_the_tool(self, tool):
        """Should report the tool for top-level collisions"""

        register_task(tool, _task("Build"))

        with pytest.raises(DuplicateDefinitionError) as info:
            register_task(tool, _task("Build"))

        assert str(info.value) == "Task 'Build' is already defined in tool 'Demo'"


class _RecordingParser(SpecificationParser):
    def __init__(self, log, name, task=None, fail=False):
        self.log = log
        self.name = name
        self.task = task
        self.fail = fail
        log.append(f"open {name}")

    def populate(self, tool):
        if self.fail:
            raise RuntimeError("boom")
        if self.task is not None:
            register_task(tool, self.task)

    def close(self):
        self.log.append(f"close {self.name}")


class TestBuildTool:
    """Test sequential parser execution"""

    def test_parsers_run_sequentially_and_are_closed(self):
        """Should open and close each parser in turn"""

        log = []

        tool = build_tool(
            metadata=ToolMetadata(name="Demo"),
            parser_factories=[
                lambda: _RecordingParser(log, "first", _task("A")),
                lambda: _RecordingParser(log, "second", _task("B")),
            ],
            references=["demo.yaml"],
        )

        assert log == ["open first", "close first", "open second", "close second"]
        assert [t.name for t in tool.tasks] == ["A", "B"]
        assert tool.references == ["demo.yaml"]

    def test_failing_parser_is_closed_and_stops_the_run(self):
        """Should release the failing parser and never construct later ones"""

        log = []

        with pytest.raises(RuntimeError):
            build_tool(
                metadata=ToolMetadata(name="Demo"),
                parser_factories=[
                    lambda: _RecordingParser(log, "first", fail=True),
                    lambda: _RecordingParser(log, "second"),
                ],
            )

        assert log == ["open first", "close first"]

    def test_later_parser_sees_earlier_names(self):
        """Should detect collisions across parsers"""

        log = []

        with pytest.raises(DuplicateDefinitionError):
            build_tool(
                metadata=ToolMetadata(name="Demo"),
                parser_factories=[
                    lambda: _RecordingParser(log, "first", _task("A")),
                    lambda: _RecordingParser(log, "second", _task("A")),
                ],
            )
        assert log[-1] == "close second"


class TestMerge:
    """Test lifting of shared properties"""

    def test_block_shared_by_four_tasks_becomes_one_set(self, tool):
        """Should lift the shared 3-block and leave the partial holder alone"""

        for index in range(1, 5):
            register_task(tool, _task(f"T{index}", _prop(f"Own{index}"), _prop("A"), _prop("B"), _prop("C")))
        register_task(tool, _task("T5", _prop("A"), _prop("B"), _prop("Other")))

        merge_common_properties(tool, MergePolicy())

        assert len(tool.common_task_property_sets) == 1
        common = tool.common_task_property_sets[0]
        assert common.name == "CommonSet1"
        assert [p.name for p in common.properties] == ["A", "B", "C"]
        for index in range(1, 5):
            task = tool.get_task(f"T{index}")
            assert task.common_property_sets == ["CommonSet1"]
            assert [p.name for p in task.settings_class.properties] == [f"Own{index}"]

        fifth = tool.get_task("T5")
        assert [p.name for p in fifth.settings_class.properties] == ["A", "B", "Other"]
        assert fifth.common_property_sets == []
        assert fifth.common_properties == []
        assert tool.common_task_properties == []

    def test_single_properties_are_lifted(self, tool):
        """Should lift a property held by enough tasks"""

        register_task(tool, _task("A", _prop("Host"), _prop("OnlyA")))
        register_task(tool, _task("B", _prop("OnlyB"), _prop("Host")))
        register_task(tool, _task("C", _prop("OnlyC")))

        merge_common_properties(tool, MergePolicy())

        assert [p.name for p in tool.common_task_properties] == ["Host"]
        assert tool.get_task("A").common_properties == ["Host"]
        assert [p.name for p in tool.get_task("B").settings_class.properties] == ["OnlyB"]
        assert tool.get_task("C").common_properties == []

    def test_properties_must_match_name_type_and_help(self, tool):
        """Should only lift identical properties and only one per name"""

        register_task(tool, _task("A", _prop("Host", help_="first")))
        register_task(tool, _task("B", _prop("Host", help_="first")))
        register_task(tool, _task("C", _prop("Host", help_="second")))
        register_task(tool, _task("D", _prop("Host", help_="second")))
        register_task(tool, _task("E", _prop("Host", "int", help_="first")))

        merge_common_properties(tool, MergePolicy())

        assert [(p.name, p.help) for p in tool.common_task_properties] == [("Host", "first")]
        assert [t.name for t in tool.tasks if t.common_properties] == ["A", "B"]
        assert tool.get_task("C").settings_class.properties[0].help == "second"
        assert tool.get_task("E").settings_class.properties[0].type == "int"

    def test_threshold_is_configurable(self, tool):
        """Should respect min_tasks"""

        register_task(tool, _task("A", _prop("Host")))
        register_task(tool, _task("B", _prop("Host")))

        merge_common_properties(tool, MergePolicy(min_tasks=3))

        assert tool.common_task_properties == []
        assert tool.get_task("A").settings_class.properties[0].name == "Host"

    def test_sets_are_numbered_in_lift_order(self, tool):
        """Should lift the block saving most entries first"""

        big = [_prop(n) for n in ("P", "Q", "R", "S")]
        small = [_prop(n) for n in ("X", "Y", "Z")]
        register_task(tool, _task("A", *big, *small))
        register_task(tool, _task("B", *big))
        register_task(tool, _task("C", *small))

        merge_common_properties(tool, MergePolicy())

        sets = [(s.name, [p.name for p in s.properties]) for s in tool.common_task_property_sets]
        assert sets == [("CommonSet1", ["P", "Q", "R", "S"]), ("CommonSet2", ["X", "Y", "Z"])]
        assert tool.get_task("A").common_property_sets == ["CommonSet1", "CommonSet2"]
        assert tool.get_task("A").settings_class.properties == []
