import json
import warnings

import pytest

from lagrangiandescriptors import ConfigurationError, DescriptorConfig, Direction, Method, get_config, load_config


def test_defaults_are_both_and_augmented():
    cfg = get_config()
    assert cfg.direction is Direction.BOTH
    assert cfg.method is Method.AUGMENTED
    assert cfg.backend == "auto"


@pytest.mark.parametrize("value, expected", [
    ("forward", Direction.FORWARD),
    ("BACKWARD", Direction.BACKWARD),
    (Direction.BOTH, Direction.BOTH),
])
def test_direction_accepts_strings_and_members(value, expected):
    assert DescriptorConfig(direction=value).direction is expected


def test_invalid_direction_names_value_and_accepted_set():
    with pytest.raises(ConfigurationError) as exc:
        DescriptorConfig(direction="sideways")
    msg = str(exc.value)
    assert "sideways" in msg
    assert "forward" in msg and "backward" in msg and "both" in msg


def test_invalid_method_reported_before_direction():
    with pytest.raises(ConfigurationError) as exc:
        DescriptorConfig(direction="sideways", method="invalid")
    msg = str(exc.value)
    assert "'method'" in msg
    assert "augmented" in msg and "postprocessed" in msg


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        DescriptorConfig(method=3)


@pytest.mark.parametrize("kwargs", [
    {"backend": "cuda"},
    {"quadrature_points": 1},
    {"quadrature_points": 10.5},
    {"verbose": "yes"},
])
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        DescriptorConfig(**kwargs)


def test_coarse_quadrature_warns_only_for_postprocessed():
    with pytest.warns(UserWarning, match="quadrature points"):
        DescriptorConfig(method="postprocessed", quadrature_points=11)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        DescriptorConfig(method="augmented", quadrature_points=11)


def test_save_and_load(tmp_path):
    cfg = DescriptorConfig(direction="forward", method="postprocessed", backend="numpy", quadrature_points=501)
    path = tmp_path / "ld.json"
    cfg.save(str(path))

    data = json.loads(path.read_text())
    assert data["direction"] == "forward"
    assert data["__version__"] == 1

    loaded = load_config(str(path))
    assert loaded == cfg


def test_unknown_fields_rejected():
    with pytest.raises(ConfigurationError, match="Unknown configuration fields"):
        DescriptorConfig.from_dict({"direction": "both", "integrator": "rk4"})


def test_newer_version_rejected():
    with pytest.raises(ConfigurationError, match="newer"):
        DescriptorConfig.from_dict({"__version__": 99})
