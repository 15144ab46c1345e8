import pytest
from pydantic import ValidationError

import xfmt
from xfmt import XfmtConfig, compile_template


def test_defaults():
    config = XfmtConfig.load({})
    assert config.cache_size == 256
    assert config.merge_literals is True
    assert config.debug is False


def test_load_from_environment():
    config = XfmtConfig.load(
        {"XFMT_CACHE_SIZE": "8", "XFMT_MERGE_LITERALS": "off", "XFMT_DEBUG": "1"}
    )
    assert config.cache_size == 8
    assert config.merge_literals is False
    assert config.debug is True


def test_invalid_cache_size():
    with pytest.raises(ValidationError):
        XfmtConfig.load({"XFMT_CACHE_SIZE": "-1"})


def test_configure_applies_to_compilation():
    try:
        xfmt.configure(XfmtConfig(merge_literals=False, cache_size=0))
        assert len(compile_template('"a" "b"').actions) == 2
        assert xfmt.get_config().cache_size == 0
    finally:
        xfmt.configure(XfmtConfig())
    assert len(compile_template('"a" "b"').actions) == 1
