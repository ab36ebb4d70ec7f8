"""
Tests for back-reference wiring

Must:
- Point every data class, task and settings class at its owners
- Be idempotent
"""

from core.domain.definitions import ToolMetadata
from core.domain.models import DataClass, SettingsClass, Task
from core.services.model_builder import create_tool, register_data_class, register_task
from core.services.reference_resolver import populate_references, references_resolved


def _tool():
    tool = create_tool(ToolMetadata(name="Demo"))
    register_task(tool, Task(name="Build", settings_class=SettingsClass(name="DemoBuildSettings")))
    register_task(tool, Task(name="Push", settings_class=SettingsClass(name="DemoPushSettings")))
    register_data_class(tool, DataClass(name="Image"))
    return tool


class TestPopulateReferences:
    """Test back-reference assignment"""

    def test_fresh_tool_is_unresolved(self):
        """Should report a freshly built tool as unresolved"""

        assert references_resolved(_tool()) is False

    def test_back_references_point_at_owners(self):
        """Should name the owning tool and task"""

        tool = populate_references(_tool())

        assert references_resolved(tool)
        assert tool.data_classes[0].tool == "Demo"
        for task in tool.tasks:
            assert task.tool == "Demo"
            assert task.settings_class.tool == "Demo"
            assert task.settings_class.task == task.name

    def test_second_run_changes_nothing(self):
        """Should leave the graph unchanged when run twice"""

        tool = populate_references(_tool())
        before = tool.model_dump()

        populate_references(tool)

        assert tool.model_dump() == before

    def test_stale_reference_is_detected(self):
        """Should notice a settings class pointing at another task"""

        tool = populate_references(_tool())
        tool.tasks[1].settings_class.task = "Build"

        assert references_resolved(tool) is False
