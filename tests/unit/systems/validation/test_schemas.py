"""
Tests for collection schemas through the SchemaRegistry.

Covers:
  - Agent handle, timezone, and role rules
  - Economics wallet format and revenue split total
  - Capability quota coverage
  - Practice contract CRON and timezone
  - Unknown keys are ignored
"""

from __future__ import annotations

from registry_guardian.primitives.common import Collection
from registry_guardian.systems.validation import SchemaRegistry

_WALLET = "0x" + "a" * 40


def _check(collection: Collection, payload: dict) -> dict[str, str]:
    return {e.path: e.message for e in SchemaRegistry().check(collection, payload)}


def _make_agent(**overrides) -> dict:
    payload = {
        "handle": "abraham",
        "displayName": "Abraham",
        "role": "TRAINER",
        "timezone": "Europe/Berlin",
        "configHash": "sha256:abc",
    }
    payload.update(overrides)
    return payload


def _make_economics(*percentages: float) -> dict:
    return {
        "agentId": "agent-1",
        "wallet": _WALLET,
        "payoutPolicy": {"chain": "base", "token": "USDC", "min": 10, "cadence": "weekly"},
        "revenueSplits": [
            {"address": _WALLET, "percentage": p, "label": f"split {i}", "role": "primary"}
            for i, p in enumerate(percentages)
        ],
    }


def _make_capabilities(image_gen: bool = False, video_gen: bool = False, quotas: list | None = None) -> dict:
    return {
        "agentId": "agent-1",
        "capabilities": {
            "imageGen": image_gen,
            "videoGen": video_gen,
            "audioGen": False,
            "codeExec": False,
            "webBrowse": True,
            "memoryPersistence": True,
        },
        "providers": {"chatModel": "custom"},
        "quotas": quotas or [{"name": "tokens", "perDay": 1000}],
        "safetyPolicy": {"blockedTopics": [], "riskTolerance": 1},
        "integrations": [],
    }


def _make_practice(**overrides) -> dict:
    payload = {
        "agentId": "agent-1",
        "name": "Daily sketch",
        "scheduleCron": "0 9 * * *",
        "tz": "America/New_York",
        "mediums": ["image"],
        "dailyGoal": "One sketch",
        "reviewPolicy": "manual",
        "kpis": [{"name": "sketches", "target": 1, "unit": "count"}],
        "effectiveFrom": "2026-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


class TestAgentSchema:
    def test_valid_agent(self):
        assert _check(Collection.AGENT, _make_agent()) == {}

    def test_handle_rejects_uppercase(self):
        assert "handle" in _check(Collection.AGENT, _make_agent(handle="Abraham"))

    def test_handle_too_short(self):
        assert "handle" in _check(Collection.AGENT, _make_agent(handle="ab"))

    def test_unknown_role(self):
        assert "role" in _check(Collection.AGENT, _make_agent(role="WIZARD"))

    def test_timezone_shape(self):
        assert "timezone" in _check(Collection.AGENT, _make_agent(timezone="UTC+2"))

    def test_unknown_keys_ignored(self):
        assert _check(Collection.AGENT, _make_agent(favouriteColour="teal")) == {}

    def test_snake_case_names_accepted(self):
        payload = _make_agent()
        payload["display_name"] = payload.pop("displayName")
        assert _check(Collection.AGENT, payload) == {}


class TestAgentStatusSchema:
    def test_valid_transition(self):
        assert _check(Collection.AGENT_STATUS, {"agentId": "agent-1", "status": "ACTIVE"}) == {}

    def test_unknown_status(self):
        assert "status" in _check(Collection.AGENT_STATUS, {"agentId": "agent-1", "status": "RETIRED"})


class TestEconomicsSchema:
    def test_splits_summing_to_100_pass(self):
        assert _check(Collection.ECONOMICS, _make_economics(70, 30)) == {}

    def test_splits_must_sum_to_100(self):
        errors = _check(Collection.ECONOMICS, _make_economics(70, 20))
        assert "Revenue splits must sum to exactly 100%, got 90%" in errors["revenueSplits"]

    def test_wallet_format(self):
        payload = _make_economics(100)
        payload["wallet"] = "not-a-wallet"
        assert "wallet" in _check(Collection.ECONOMICS, payload)


class TestCapabilitySetSchema:
    def test_no_media_needs_no_media_quota(self):
        assert _check(Collection.CAPABILITIES, _make_capabilities()) == {}

    def test_image_generation_needs_image_quota(self):
        errors = _check(Collection.CAPABILITIES, _make_capabilities(image_gen=True))
        assert "Image generation enabled but no image quota set" in errors["(root)"]

    def test_image_quota_satisfies_image_generation(self):
        quotas = [{"name": "images", "perDay": 20}]
        assert _check(Collection.CAPABILITIES, _make_capabilities(image_gen=True, quotas=quotas)) == {}

    def test_video_generation_needs_minutes_quota(self):
        errors = _check(Collection.CAPABILITIES, _make_capabilities(video_gen=True))
        assert "Media generation enabled but no minutes quota set" in errors["(root)"]


class TestPracticeContractSchema:
    def test_valid_contract(self):
        assert _check(Collection.PRACTICE, _make_practice()) == {}

    def test_invalid_cron(self):
        errors = _check(Collection.PRACTICE, _make_practice(scheduleCron="every morning"))
        assert "Invalid CRON expression" in errors["scheduleCron"]

    def test_invalid_timezone(self):
        errors = _check(Collection.PRACTICE, _make_practice(tz="Mars/Olympus_Mons"))
        assert "Invalid IANA timezone" in errors["tz"]
