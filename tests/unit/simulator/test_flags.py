"""
Flag parser unit tests
"""

from kubesim.simulator.flags import Flags, Present, WithValue, parse_flags, split_positionals


class TestParseFlags:
    """Test the long and short flag grammar"""

    def test_long_flag_with_equals_carries_value(self):
        """Test --key=value splits on the first equals sign"""
        flags = parse_flags(["--image=nginx:1.25", "--selector=app=web"])
        assert flags.values["image"] == WithValue(value="nginx:1.25")
        assert flags.get("selector") == "app=web"

    def test_long_flag_consumes_next_token(self):
        """Test --key value consumes the following token"""
        flags = parse_flags(["--replicas", "3", "--namespace", "demo"])
        assert flags.get("replicas") == "3"
        assert flags.get("namespace") == "demo"

    def test_flag_followed_by_flag_is_presence(self):
        """Test a flag followed by another flag is a boolean presence"""
        flags = parse_flags(["--all-namespaces", "-o", "wide"])
        assert isinstance(flags.values["all-namespaces"], Present)
        assert flags.get("o") == "wide"

    def test_short_flag_rules(self):
        """Test -k takes a value unless the next token starts with a dash"""
        flags = parse_flags(["-n", "kube-system", "-A"])
        assert flags.get("n") == "kube-system"
        assert isinstance(flags.values["A"], Present)
        assert flags.get("A") is None

    def test_trailing_value_flag_is_presence(self):
        """Test a value flag at the end of the line falls back to the default"""
        flags = parse_flags(["-n"])
        assert flags.given("n")
        assert flags.get("namespace", "n", default="default") == "default"

    def test_empty_next_token_is_a_value(self):
        """Test an empty string is consumed as the value"""
        flags = parse_flags(["--port", "", "-n", ""])
        assert flags.get("port") == ""
        assert flags.get("n", default="default") == ""

    def test_non_flag_tokens_are_ignored(self):
        """Test positionals in between flags are skipped"""
        flags = parse_flags(["web", "--image=nginx", "extra"])
        assert list(flags) == ["image"]
        assert len(flags) == 1
        assert "image" in flags

    def test_long_single_dash_tokens_are_ignored(self):
        """Test -abc is neither a short nor a long flag"""
        assert len(parse_flags(["-abc"])) == 0


class TestFlagsAccessors:
    """Test Flags lookups"""

    def test_get_returns_first_alias_with_value(self):
        """Test aliases are searched in order"""
        flags = Flags({"n": WithValue(value="a"), "namespace": WithValue(value="b")})
        assert flags.get("namespace", "n") == "b"
        assert flags.get("missing", "n") == "a"

    def test_get_int(self):
        """Test integer conversion returns None on bad input"""
        flags = parse_flags(["--replicas=3", "--port=http"])
        assert flags.get_int("replicas") == 3
        assert flags.get_int("port") is None
        assert flags.get_int("missing") is None


class TestSplitPositionals:
    """Test positional extraction"""

    def test_positionals_stop_at_first_flag(self):
        """Test only the leading non-flag tokens are returned"""
        assert split_positionals(["web", "nginx", "-n", "demo", "late"]) == ["web", "nginx"]

    def test_single_dash_is_positional(self):
        """Test a lone dash (stdin) counts as positional"""
        assert split_positionals(["-", "-n", "x"]) == ["-"]
