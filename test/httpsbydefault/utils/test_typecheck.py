import typing

import pytest

from httpsbydefault.utils import typecheck


def test_check_option_type():
    typecheck.check_option_type("foo", 42, int)
    typecheck.check_option_type("foo", "42", str)
    typecheck.check_option_type("foo", True, bool)
    typecheck.check_option_type("foo", None, typing.Optional[str])
    typecheck.check_option_type("foo", "bar", str | None)

    with pytest.raises(TypeError):
        typecheck.check_option_type("foo", 42, str)
    with pytest.raises(TypeError):
        typecheck.check_option_type("foo", "true", bool)
    with pytest.raises(TypeError):
        typecheck.check_option_type("foo", 42, typing.Optional[str])
    with pytest.raises(TypeError, match="Expected"):
        typecheck.check_option_type("foo", ["a"], str | None)
