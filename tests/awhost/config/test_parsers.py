from datetime import timedelta
from pathlib import Path

import pytest

from awhost.config import NoParserForTypeError, parse, parser_for, register_parser, reset_parsers
from awhost.config.parsers import parse_bool, parse_duration, parse_float, parse_int

MODULE = __name__.rsplit(".", 1)[-1]


class Port(int):
    pass


class TestBuiltinParsers:
    """Tests for the built-in string parsers."""

    @pytest.mark.parametrize("value", ["1", "t", "T", "TRUE", "true", "True"])
    def test_bool_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["0", "f", "F", "FALSE", "false", "False"])
    def test_bool_false(self, value):
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", ["yes", "", "tRUE", " true"])
    def test_bool_invalid(self, value):
        with pytest.raises(ValueError):
            parse_bool(value)

    def test_int(self):
        assert parse_int("42") == 42
        assert parse_int("-7") == -7
        assert parse_int("+3") == 3

    @pytest.mark.parametrize("value", ["", "1.5", "1_000", " 1", "0x10", "abc"])
    def test_int_invalid(self, value):
        with pytest.raises(ValueError):
            parse_int(value)

    def test_float(self):
        assert parse_float("1.5") == 1.5
        assert parse_float("-2") == -2.0
        assert parse_float("1e3") == 1000.0

    @pytest.mark.parametrize("value", ["", "abc", " 1.5", "1_0.0"])
    def test_float_invalid(self, value):
        with pytest.raises(ValueError):
            parse_float(value)

    def test_str_identity(self):
        assert parse(str, "  spaced ") == "  spaced "


class TestDuration:
    """Tests for duration parsing."""

    @pytest.mark.parametrize("value, expected", [
        ("300ms", timedelta(milliseconds=300)),
        ("-1.5h", -timedelta(hours=1.5)),
        ("2h45m", timedelta(hours=2, minutes=45)),
        ("1s", timedelta(seconds=1)),
        ("10us", timedelta(microseconds=10)),
        ("10µs", timedelta(microseconds=10)),
        ("1500ns", timedelta(microseconds=1)),
        ("0", timedelta(0)),
        ("+5m", timedelta(minutes=5)),
        (".5s", timedelta(milliseconds=500)),
    ])
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    def test_missing_unit(self):
        with pytest.raises(ValueError, match="missing unit in duration '10'"):
            parse_duration("10")

    @pytest.mark.parametrize("value", ["", "abc", "1d", "1h 2m", "h"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="invalid duration"):
            parse_duration(value)


class TestRegistry:
    """Tests for the parser registry."""

    def test_builtin_types(self):
        for type_ in (str, bool, int, float, timedelta):
            assert callable(parser_for(type_))

    def test_missing_parser(self):
        with pytest.raises(NoParserForTypeError) as exc_info:
            parser_for(Port)
        assert str(exc_info.value) == f"parser for type '{MODULE}.Port' does not exist"

    def test_register_parser(self):
        register_parser(Path, Path)
        assert parse(Path, "/tmp/x") == Path("/tmp/x")

    def test_register_parser_as_decorator(self):
        @register_parser(complex)
        def parse_complex(value):
            return complex(value)

        assert parse(complex, "1+2j") == complex(1, 2)
        assert parse_complex("3j") == 3j

    def test_register_replaces(self):
        register_parser(int, lambda value: -1)
        assert parse(int, "5") == -1

    def test_reset_restores_builtins(self):
        register_parser(int, lambda value: -1)
        register_parser(Path, Path)
        reset_parsers()
        assert parse(int, "5") == 5
        with pytest.raises(NoParserForTypeError):
            parser_for(Path)
