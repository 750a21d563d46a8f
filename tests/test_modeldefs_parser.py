from pathlib import Path

from docker_api_parity.parser.base import method_key
from docker_api_parity.parser.modeldefs import parse_modeldefs, parse_modeldefs_lines

FIXTURES = Path(__file__).parent / "fixtures"


def _by_key(methods):
    return {(method_key(m), m.is_response): m for m in methods}


class TestModeldefsFixture:
    def test_method_count(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        assert len(methods) == 8
        assert len([m for m in methods if not m.is_response]) == 7

    def test_ordinary_comment_is_not_a_method(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        assert all(m.source_line != 2 for m in methods)

    def test_events_parameters(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        events = _by_key(methods)[(("GET", "/events"), False)]
        assert events.source_line == 5
        assert [(p.name, p.param_type, p.location) for p in events.parameters] == [
            ("filters", "args", "query"),
            ("since", "string", "query"),
            ("until", "string", "query"),
        ]

    def test_trailing_comment_stripped(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        listing = _by_key(methods)[(("GET", "/containers/json"), False)]
        limit = [p for p in listing.parameters if p.name == "limit"][0]
        assert limit.param_type == "int"
        assert limit.location == "query"

    def test_parenthesised_path_normalized(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        assert (("GET", "/containers/*/json"), False) in _by_key(methods)
        assert (("DELETE", "/containers/*"), False) in _by_key(methods)

    def test_response_descriptor_flagged(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        responses = [m for m in methods if m.is_response]
        assert len(responses) == 1
        assert responses[0].source_line == 25

    def test_comment_lines_inside_struct_skipped(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        kill = _by_key(methods)[(("POST", "/containers/*/kill"), False)]
        assert [p.name for p in kill.parameters] == ["force", "signal"]

    def test_tag_with_extra_options(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        rename = _by_key(methods)[(("POST", "/containers/*/rename"), False)]
        assert [(p.name, p.param_type, p.location) for p in rename.parameters] == [
            ("name", "string", "query"),
        ]

    def test_untagged_fields_have_empty_location(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go")
        exec_create = _by_key(methods)[(("POST", "/containers/*/exec"), False)]
        assert [(p.name, p.param_type, p.location) for p in exec_create.parameters] == [
            ("attachstdin", "bool", ""),
            ("cmd", "[]string", ""),
        ]

    def test_methods_in_line_order(self):
        methods = parse_modeldefs(FIXTURES / "modeldefs.go", workers=4)
        lines = [m.source_line for m in methods]
        assert lines == sorted(lines)


class TestModeldefsLines:
    def test_single_token_field_becomes_name(self):
        lines = [
            "// GET /images/json",
            "type ImageListParameters struct {",
            "\tEmbedded",
            "}",
        ]
        [method] = parse_modeldefs_lines(lines)
        [param] = method.parameters
        assert (param.name, param.param_type, param.location) == ("embedded", "", "")

    def test_tag_without_quotes_degrades(self):
        lines = [
            "// GET /images/json",
            "type ImageListParameters struct {",
            "\tAll bool rest",
            "}",
        ]
        [method] = parse_modeldefs_lines(lines)
        [param] = method.parameters
        assert (param.name, param.param_type, param.location) == ("all", "bool", "")

    def test_blank_line_ends_parameters(self):
        lines = [
            "// GET /images/json",
            "type ImageListParameters struct {",
            "\tAll bool `rest:\"query\"`",
            "",
            "\tDigests bool `rest:\"query\"`",
        ]
        [method] = parse_modeldefs_lines(lines)
        assert [p.name for p in method.parameters] == ["all"]

    def test_response_marker_case_insensitive(self):
        lines = ["// GET /images/(name)/json Response", "type X struct {", "}"]
        [method] = parse_modeldefs_lines(lines)
        assert method.is_response is True

    def test_single_token_comment_does_not_fail(self):
        [method] = parse_modeldefs_lines(["///"])
        assert method.method == "///"
        assert method.path == "///"
        assert method.parameters == ()

    def test_struct_at_end_of_file(self):
        [method] = parse_modeldefs_lines(["// GET /_ping"])
        assert method.parameters == ()
