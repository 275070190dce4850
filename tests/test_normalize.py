from __future__ import annotations

import pytest

from conduit_common.models import (
    BatchExportConfig,
    HogFunction,
    HogFunctionTemplate,
    PipelineBackend,
    PluginConfig,
    PluginInfo,
)
from conduit_destinations.normalize import normalize

from conftest import batch_export, hog_function, plugin, plugin_config, template


def test_plugin_destination_uses_own_name_and_realtime_interval():
    config = PluginConfig.model_validate(plugin_config(7, 1, enabled=True, name="Team webhook"))
    d = normalize(config, PipelineBackend.PLUGIN, plugin=PluginInfo.model_validate(plugin(1)))

    assert d.backend is PipelineBackend.PLUGIN
    assert d.id == 7
    assert d.key == "plugin:7"
    assert d.name == "Team webhook"
    assert d.description == "Send to a webhook"
    assert d.interval == "realtime"
    assert d.enabled is True
    assert d.plugin.id == 1


def test_plugin_destination_falls_back_to_plugin_metadata():
    config = PluginConfig.model_validate(plugin_config(8, 2))
    d = normalize(config, "plugin", plugin=PluginInfo.model_validate(plugin(2, "Customer.io", "Sync people")))

    assert d.name == "Customer.io"
    assert d.description == "Sync people"


def test_plugin_destination_without_metadata_is_unknown_app():
    config = PluginConfig.model_validate(plugin_config(9, 99))
    d = normalize(config, PipelineBackend.PLUGIN)

    assert d.name == "Unknown app"
    assert d.description == ""
    assert d.plugin is None


@pytest.mark.parametrize("paused, enabled", [(True, False), (False, True)])
def test_batch_export_enabled_is_inverse_of_paused(paused, enabled):
    be = BatchExportConfig.model_validate(batch_export("be1", paused=paused))
    d = normalize(be, PipelineBackend.BATCH_EXPORT)

    assert d.enabled is enabled
    assert d.batch_export.paused is paused


def test_batch_export_description_and_interval():
    be = BatchExportConfig.model_validate(batch_export("be2", type="Snowflake", interval="hour"))
    d = normalize(be, PipelineBackend.BATCH_EXPORT)

    assert d.description == "Snowflake batch export"
    assert d.interval == "hour"
    assert d.service.type == "Snowflake"
    assert d.updated_at is not None


def test_function_destination_enriched_from_template():
    fn = HogFunction.model_validate(hog_function("43", None, template_id="template-slack"))
    tpl = HogFunctionTemplate.model_validate(template("template-slack"))
    d = normalize(fn, PipelineBackend.HOG_FUNCTION, template=tpl)

    assert d.name == "Slack"
    assert d.description == "Post to Slack"
    assert d.icon_url == "/static/slack.png"
    assert d.interval == "realtime"


def test_function_destination_without_template_still_normalizes():
    fn = HogFunction.model_validate(hog_function("44", None, template_id="missing"))
    d = normalize(fn, PipelineBackend.HOG_FUNCTION)

    assert d.name == "Unnamed function"
    assert d.key == "hog_function:44"


@pytest.mark.parametrize(
    "raw, backend",
    [
        (PluginConfig(id=1, plugin=1), PipelineBackend.PLUGIN),
        (
            BatchExportConfig(id="x", name="x", destination={"type": "S3"}),
            PipelineBackend.BATCH_EXPORT,
        ),
        (HogFunction(id="f"), PipelineBackend.HOG_FUNCTION),
    ],
)
def test_normalize_is_total_and_deterministic_on_minimal_input(raw, backend):
    first = normalize(raw, backend)
    second = normalize(raw, backend)

    assert first == second
    assert isinstance(first.enabled, bool)
    assert first.name


def test_normalize_rejects_resource_of_the_wrong_kind():
    with pytest.raises(TypeError):
        normalize(HogFunction(id="f"), PipelineBackend.PLUGIN)
