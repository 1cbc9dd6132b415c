import re

import pytest

from clusterlens.custom_analyzer import Connection, CustomAnalyzer, CustomAnalyzerConfiguration


@pytest.fixture
def existing():
    return [CustomAnalyzerConfiguration(name="my.analyzer-1", connection=Connection("localhost", 8085))]


@pytest.mark.parametrize("name", ["", "Upper", "under_score", "-lead", "trail-", "a..b", "name\n"])
def test_invalid_names_rejected(name):
    with pytest.raises(ValueError, match="invalid name format"):
        CustomAnalyzer().check([], name, "localhost", 9000)


def test_duplicate_name_rejected(existing):
    with pytest.raises(ValueError, match=re.escape("'my.analyzer-1' already exists. Please use a different name")):
        CustomAnalyzer().check(existing, "my.analyzer-1", "otherhost", 9000)


def test_duplicate_connection_rejected(existing):
    with pytest.raises(ValueError, match=re.escape("(URL: 'localhost', Port: 8085) already exists")):
        CustomAnalyzer().check(existing, "fresh", "localhost", 8085)


def test_same_url_different_port_accepted_then_name_clash_detected(existing):
    analyzer = CustomAnalyzer()
    assert analyzer.check(existing, "fresh", "localhost", 8086) is None
    existing.append(CustomAnalyzerConfiguration("fresh", Connection("localhost", 8086)))
    with pytest.raises(ValueError, match="already exists"):
        analyzer.check(existing, "fresh", "elsewhere", 1)


def test_first_matching_entry_decides_error():
    config = [
        CustomAnalyzerConfiguration("one", Connection("host", 1)),
        CustomAnalyzerConfiguration("two", Connection("host", 2)),
    ]
    with pytest.raises(ValueError, match="same connection configuration"):
        CustomAnalyzer().check(config, "two", "host", 1)