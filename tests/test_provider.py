"""
Provider facade tests: validation gate, dispatch and replacement.
"""
import pytest

from sgprovider import provider
from sgprovider.errors import UnknownResourceType, ValidationError

SG = "exoscale_security_group"
RULE = "exoscale_security_group_rule"


class TestValidationGate:
    def test_cidr_and_peer_group_rejected_before_api(self, client, ctx, web_group):
        attrs = {
            "type": "ingress", "security_group_name": "web",
            "cidr": "10.0.0.0/8", "user_security_group": "db",
        }
        with pytest.raises(ValidationError):
            provider.create(RULE, attrs, ctx)
        assert client.calls == []

    @pytest.mark.parametrize("attrs", [
        {"start_port": 0},
        {"start_port": 65536},
        {"protocol": "ICMP", "icmp_type": 256},
        {"protocol": "ICMP", "icmp_type": -1},
    ])
    def test_ranges_rejected_before_api(self, client, ctx, attrs):
        full = {"type": "ingress", "security_group_name": "web", "cidr": "0.0.0.0/0"}
        full.update(attrs)
        with pytest.raises(ValidationError):
            provider.create(RULE, full, ctx)
        assert client.calls == []

    def test_validate_returns_errors(self):
        errors = provider.validate(RULE, {"type": "upstream", "security_group_id": "sg-1"})
        assert errors == ["type: expected type to be one of [ingress egress], got upstream"]

    def test_validate_tolerates_references(self):
        attrs = {"type": "ingress", "security_group_id": "${exoscale_security_group.web.id}"}
        assert provider.validate(RULE, attrs) == []

    def test_unknown_resource_type(self, ctx):
        with pytest.raises(UnknownResourceType):
            provider.create("exoscale_compute", {}, ctx)


class TestLifecycle:
    def test_group_then_rule(self, client, ctx):
        group_state = provider.create(SG, {"name": "web", "description": "web tier"}, ctx)
        rule_state = provider.create(
            RULE,
            {"type": "ingress", "security_group_id": group_state.id, "protocol": "tcp", "port": 22,
             "cidr": "0.0.0.0/0"},
            ctx,
        )

        assert rule_state.get("protocol") == "TCP"
        assert rule_state.get("security_group_name") == "web"

        provider.read(SG, group_state, ctx)
        assert group_state.exists

        provider.delete(RULE, rule_state, ctx)
        assert not rule_state.exists
        provider.delete(SG, group_state, ctx)
        assert client.groups == {}

    def test_read_after_external_delete(self, client, ctx):
        state = provider.create(SG, {"name": "web"}, ctx)
        client.groups.clear()

        assert provider.read(SG, state, ctx).id == ""


class TestReplacement:
    def test_no_change(self):
        old = {"type": "ingress", "security_group_name": "web", "port": 22}
        assert provider.requires_replacement(RULE, old, dict(old)) == []

    def test_changed_direction_forces_replacement(self):
        old = {"type": "ingress", "security_group_name": "web"}
        new = {"type": "egress", "security_group_name": "web"}
        assert provider.requires_replacement(RULE, old, new) == ["type"]

    def test_omitted_computed_reference_is_not_a_change(self):
        old = {"type": "ingress", "security_group_name": "web", "security_group_id": "sg-1"}
        new = {"type": "ingress", "security_group_name": "web"}
        assert provider.requires_replacement(RULE, old, new) == []

    def test_default_protocol_is_not_a_change(self):
        old = {"type": "ingress", "security_group_name": "web", "protocol": "TCP"}
        new = {"type": "ingress", "security_group_name": "web"}
        assert provider.requires_replacement(RULE, old, new) == []

    @pytest.mark.parametrize("attrs", [
        {"type": "INGRESS", "protocol": "udp", "port": 53, "cidr": "10.0.0.0/8"},
        {"type": "egress", "protocol": "ICMP", "icmp_type": 8, "icmp_code": 0, "cidr": "0.0.0.0/0"},
        {"type": "ingress", "start_port": 8000, "end_port": 8080, "user_security_group": "db"},
        {"type": "ingress", "protocol": "esp", "cidr": "2001:db8::/32"},
    ])
    def test_created_rule_matches_its_declaration(self, client, ctx, web_group, attrs):
        client.add_group("db")
        attrs = dict(attrs, security_group_name="web")
        state = provider.create(RULE, attrs, ctx)

        assert provider.requires_replacement(RULE, state.attributes, attrs) == []

        provider.read(RULE, state, ctx)
        assert provider.requires_replacement(RULE, state.attributes, attrs) == []

    def test_declared_port_change_after_create(self, client, ctx, web_group):
        attrs = {"type": "ingress", "security_group_name": "web", "port": 53, "cidr": "0.0.0.0/0"}
        state = provider.create(RULE, attrs, ctx)

        changed = provider.requires_replacement(RULE, state.attributes, dict(attrs, port=5353))
        assert changed == ["start_port", "end_port", "port"]

    def test_dropping_icmp_type_forces_replacement(self, client, ctx, web_group):
        attrs = {"type": "ingress", "security_group_name": "web", "protocol": "ICMP",
                 "icmp_type": 8, "cidr": "0.0.0.0/0"}
        state = provider.create(RULE, attrs, ctx)

        new = {k: v for k, v in attrs.items() if k != "icmp_type"}
        assert provider.requires_replacement(RULE, state.attributes, new) == ["icmp_type"]

        assert provider.requires_replacement(RULE, old, new) == []

    def test_replace_deletes_then_creates(self, client, ctx, web_group):
        attrs = {"type": "ingress", "security_group_name": "web", "port": 22, "cidr": "0.0.0.0/0"}
        state = provider.create(RULE, attrs, ctx)
        old_id = state.id

        new_state = provider.replace(RULE, state, dict(attrs, port=2222), ctx)

        names = client.call_names()
        assert names.index("delete_ingress_rule") < len(names) - 1
        assert names[-1] == "create_ingress_rule"
        assert new_state.id != old_id
        assert new_state.get("start_port") == 2222
        assert [r.id for r in web_group.ingress_rules] == [new_state.id]

    def test_replace_with_invalid_attributes_keeps_resource(self, client, ctx, web_group):
        attrs = {"type": "ingress", "security_group_name": "web", "port": 22}
        state = provider.create(RULE, attrs, ctx)

        with pytest.raises(ValidationError):
            provider.replace(RULE, state, dict(attrs, port=0), ctx)
        assert state.exists
        assert "delete_ingress_rule" not in client.call_names()
