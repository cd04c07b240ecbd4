"""
Chart and script rule table tests
"""

from kubesim.models.install_rules import (
    CHART_RULES,
    SCRIPT_RULES,
    StepAction,
    find_chart_rule,
    find_script_rule,
)


class TestChartRules:
    """Test chart rule lookup"""

    def test_substring_match(self):
        assert find_chart_rule("openchoreo-control-plane").install_crds is True
        assert find_chart_rule("redis").components[0].name == "redis-master"
        assert find_chart_rule("toolbox") is None

    def test_only_control_plane_installs_crds(self):
        assert [r.pattern for r in CHART_RULES if r.install_crds] == ["openchoreo-control-plane"]


class TestScriptRules:
    """Test script rule lookup"""

    def test_lookup(self):
        assert find_script_rule("https://get.k3s.io").pattern == "get.k3s.io"
        assert find_script_rule("https://example.com/install.sh") is None

    def test_helm_install_steps_name_charts(self):
        """Test every helm_install step names a chart with a rule"""
        for rule in SCRIPT_RULES:
            for step in rule.steps:
                if step.action == StepAction.helm_install:
                    assert find_chart_rule(step.chart.split("/")[-1]) is not None
