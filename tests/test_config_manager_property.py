import json
import logging

import numpy as np
import pytest
import yaml
from hypothesis import given, settings, strategies as st

from cvts import CVControl, ConfigurationError, cv_ts, ts_control
from cvts.evaluation.metrics import ts_summary
from cvts.utils.config_manager import ConfigManager, resolve_callable

# Minimal recursive strategy for generating JSON-compatible dictionaries
json_values = st.recursive(
    st.text(min_size=1) | st.integers() | st.floats(allow_nan=False) | st.booleans(),
    lambda children: st.lists(children) | st.dictionaries(st.text(min_size=1), children),
    max_leaves=10
)


# Strategy for generating dot-separated paths
def paths_from_dict(d, prefix=""):
    paths = []
    if isinstance(d, dict):
        for k, v in d.items():
            new_prefix = f"{prefix}.{k}" if prefix else k
            paths.append(new_prefix)
            paths.extend(paths_from_dict(v, new_prefix))
    return paths


@st.composite
def config_and_path(draw):
    config = draw(st.dictionaries(st.text(min_size=1), json_values, min_size=1, max_size=5))
    paths = paths_from_dict(config)
    if not paths:
        return config, "nonexistent"
    path = draw(st.sampled_from(paths))
    return config, path


def mae_only(predictions, actuals):
    return {"MAE": float(abs(actuals - predictions).mean())}


class TestConfigManagerProperties:

    manager = ConfigManager()

    @given(config_and_path())
    @settings(max_examples=50)
    def test_get_value_consistency(self, data):
        """
        Property: get_value should correctly retrieve existing values using dot notation.
        """
        config, path = data

        # Manually traverse to verify
        keys = path.split('.')
        expected = config
        found = True
        for k in keys:
            if isinstance(expected, dict) and k in expected:
                expected = expected[k]
            else:
                found = False
                break

        if found:
            assert self.manager.get_value(config, path) == expected
        else:
            assert self.manager.get_value(config, path, default="DEFAULT") == "DEFAULT"

    @given(st.dictionaries(st.text(min_size=1), json_values), st.text(min_size=1), json_values)
    @settings(max_examples=50)
    def test_set_value_consistency(self, config, path, value):
        """
        Property: set_value should correctly set values, creating intermediate dicts if needed,
        and get_value should retrieve them.
        """
        if any('.' in k for k in config.keys()) or '' in path.split('.'):
            return

        # Deep copy to avoid mutating the strategy input
        config_copy = json.loads(json.dumps(config))

        self.manager.set_value(config_copy, path, value)
        retrieved = self.manager.get_value(config_copy, path)

        assert json.dumps(retrieved, sort_keys=True) == json.dumps(value, sort_keys=True)

    @given(st.dictionaries(st.text(min_size=1), json_values), st.dictionaries(st.text(min_size=1), json_values))
    @settings(max_examples=50)
    def test_merge_configs_properties(self, base, override):
        """
        Property: merge_configs should produce a merged result where override values take precedence.
        """
        merged = self.manager.merge_configs(base, override)

        for k in base:
            assert k in merged
        for k in override:
            assert k in merged
            # If not a nested dict merge, override should win
            if not (isinstance(base.get(k), dict) and isinstance(override[k], dict)):
                assert merged[k] == override[k]

    @given(
        st.integers(min_value=1, max_value=50),
        st.integers(min_value=1, max_value=24),
        st.integers(min_value=1, max_value=200),
        st.booleans(),
    )
    @settings(max_examples=50)
    def test_control_from_dict_round_trip(self, step_size, max_horizon, min_obs, fixed_window):
        """
        Property: any schema-valid settings dictionary yields the same control as ts_control.
        """
        settings_dict = {
            "step_size": step_size,
            "max_horizon": max_horizon,
            "min_obs": min_obs,
            "fixed_window": fixed_window,
        }
        control = self.manager.control_from_dict(settings_dict)
        assert control == ts_control(**settings_dict)
        assert {k: control.to_dict()[k] for k in settings_dict} == settings_dict


class TestControlFiles:

    @pytest.fixture
    def manager(self, tmp_path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        return ConfigManager(config_dir=str(config_dir))

    def test_load_control_from_yaml_section(self, manager):
        config = {
            "experiment": {
                "cv": {
                    "max_horizon": 6,
                    "min_obs": 24,
                    "fixed_window": False,
                    "summary_func": f"{__name__}:mae_only",
                }
            }
        }
        with open(manager.config_dir / "cv.yaml", "w") as f:
            yaml.safe_dump(config, f)

        control = manager.load_control("cv.yaml", section="experiment.cv")
        assert control.max_horizon == 6
        assert control.min_obs == 24
        assert control.fixed_window is False
        assert control.summary_func is mae_only
        assert control.step_size == CVControl().step_size

    def test_load_control_from_json_with_overrides(self, manager):
        with open(manager.config_dir / "cv.json", "w") as f:
            json.dump({"max_horizon": 3, "preprocess": True, "pp_method": "loglik"}, f)

        control = manager.load_control("cv.json", overrides={"max_horizon": 12})
        assert control.max_horizon == 12
        assert control.preprocess is True
        assert control.pp_method == "loglik"
        assert control.summary_func is ts_summary

    def test_missing_section(self, manager):
        with open(manager.config_dir / "cv.yaml", "w") as f:
            yaml.safe_dump({"cv": {"max_horizon": 2}}, f)
        with pytest.raises(ConfigurationError, match="Section 'other'"):
            manager.load_control("cv.yaml", section="other")

    def test_missing_file(self, manager):
        with pytest.raises(FileNotFoundError):
            manager.load_config("absent.yaml")

    def test_unsupported_format(self, manager):
        (manager.config_dir / "cv.toml").write_text("max_horizon = 2\n")
        with pytest.raises(ValueError, match="Unsupported"):
            manager.load_config("cv.toml")

    def test_unknown_setting_rejected(self, manager, caplog):
        with caplog.at_level(logging.ERROR, logger="cvts.utils.config_manager"):
            with pytest.raises(ConfigurationError, match="Additional properties"):
                manager.control_from_dict({"max_horizon": 2, "horizon": 3})
        assert "validation failed" in caplog.text

    def test_validation_error_message(self, manager):
        """
        Validation errors should contain the path to the error.
        """
        with pytest.raises(ValueError) as excinfo:
            manager.control_from_dict({"min_obs": 0})
        assert "'min_obs'" in str(excinfo.value)

    def test_nested_validation_error_path(self, tmp_path):
        schema = {
            "type": "object",
            "properties": {
                "level1": {
                    "type": "object",
                    "properties": {
                        "level2": {"type": "integer"}
                    }
                }
            }
        }
        (tmp_path / "test_schema.json").write_text(json.dumps(schema))
        manager = ConfigManager(schema_dir=str(tmp_path))

        with pytest.raises(ConfigurationError) as excinfo:
            manager.validate_config({"level1": {"level2": "not_an_integer"}}, "test_schema.json")
        assert "level1 -> level2" in str(excinfo.value)

    def test_lambda_with_preprocess_rejected(self, manager):
        with pytest.raises(ConfigurationError, match="lambda_"):
            manager.control_from_dict({"preprocess": True, "lambda_": 0.0})


class TestResolveCallable:

    def test_resolves_function(self):
        assert resolve_callable("cvts.evaluation.metrics:ts_summary") is ts_summary

    @pytest.mark.parametrize("path", ["ts_summary", "cvts.evaluation.metrics:", ":ts_summary"])
    def test_malformed_path(self, path):
        with pytest.raises(ConfigurationError, match="Expected"):
            resolve_callable(path)

    @pytest.mark.parametrize("path", ["cvts.no_such_module:f", "cvts.evaluation.metrics:missing"])
    def test_unimportable_path(self, path):
        with pytest.raises(ConfigurationError, match="Cannot import"):
            resolve_callable(path)

    def test_not_callable(self):
        with pytest.raises(ConfigurationError, match="not callable"):
            resolve_callable("cvts.evaluation.aggregation:OVERALL_LABEL")


class TestTsControl:

    @pytest.mark.parametrize("field_name", ["step_size", "max_horizon", "min_obs"])
    @pytest.mark.parametrize("value", [0, -1, 2.5, True])
    def test_positive_integers_required(self, field_name, value):
        with pytest.raises(ConfigurationError, match=field_name):
            ts_control(**{field_name: value})

    @pytest.mark.parametrize("field_name", ["step_size", "max_horizon", "min_obs"])
    def test_numpy_integers_accepted(self, field_name):
        control = ts_control(**{field_name: np.int64(12)})
        assert getattr(control, field_name) == 12
        assert type(getattr(control, field_name)) is int

    def test_numpy_integer_grid_runs(self, ramp_series):
        for min_obs in np.arange(10, 13):
            result = cv_ts(ramp_series, lambda w, h, **kw: np.repeat(w.values[-1], h),
                           control=ts_control(min_obs=min_obs))
            assert len(result.origins) == 20 - int(min_obs)

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError, match="Unknown control settings"):
            ts_control(horizon=3)

    def test_unknown_pp_method(self):
        with pytest.raises(ConfigurationError, match="pp_method"):
            ts_control(preprocess=True, pp_method="mle")

    def test_non_callable_summary(self):
        with pytest.raises(ConfigurationError, match="summary_func"):
            ts_control(summary_func="ts_summary")

    def test_transformer_contract(self):
        with pytest.raises(ConfigurationError, match="inverse"):
            ts_control(preprocess=True, transformer=type("T", (), {
                "estimate_param": lambda self, w, m: 1.0,
                "forward": lambda self, w, p: w,
            })())

    def test_base_is_not_mutated(self):
        base = ts_control(max_horizon=4)
        derived = ts_control(base, min_obs=30)
        assert base.min_obs == 12
        assert (derived.max_horizon, derived.min_obs) == (4, 30)

    def test_to_dict_names_summary_func(self):
        assert CVControl().to_dict()["summary_func"] == "cvts.evaluation.metrics:ts_summary"
