"""
Registry Guardian — Collection Schemas

Structural validators for every registry collection. Field names on the
wire are camelCase (``displayName``, ``agentId``); Python attributes are
snake_case. Unknown keys are ignored, matching the registry API's
strip-unknown behaviour.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Annotated, Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from registry_guardian.primitives.common import AgentStatus, Role, new_id, utc_now

_ETH_ADDRESS = r"^0x[a-fA-F0-9]{40}$"
_EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# minute hour day-of-month month day-of-week, each "*", a value, or "*/step"
_CRON = re.compile(
    r"^(\*|[0-5]?[0-9]|\*/[0-5]?[0-9]) "
    r"(\*|[01]?[0-9]|2[0-3]|\*/([01]?[0-9]|2[0-3])) "
    r"(\*|[1-9]|[12][0-9]|3[01]|\*/([1-9]|[12][0-9]|3[01])) "
    r"(\*|[1-9]|1[0-2]|\*/([1-9]|1[0-2])) "
    r"(\*|[0-6]|\*/[0-6])$"
)

RiskTolerance = Literal[0, 1, 2, 3]
LanguageTag = Annotated[str, Field(pattern=r"^[a-z]{2}(-[A-Z]{2})?$")]


class RegistrySchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _check_timezone(tz: str) -> str:
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Invalid IANA timezone: {tz}") from None
    return tz


# ─── Core Agent ───────────────────────────────────────────────────


class AgentSchema(RegistrySchema):
    id: str = Field(default_factory=new_id)
    handle: str = Field(min_length=3, max_length=30, pattern=r"^[a-z0-9-]+$")
    display_name: str = Field(min_length=1, max_length=50)
    role: Role
    status: AgentStatus = AgentStatus.INVITED
    cohort: str | None = None
    pronouns: Literal["they/them", "she/her", "he/him", "it/its"] | None = None
    timezone: str = Field(pattern=r"^[A-Za-z_]+/[A-Za-z_]+$")
    languages: list[LanguageTag] = Field(default_factory=lambda: ["en"])
    prototype_url: AnyUrl | None = None

    created_at: datetime = Field(default_factory=utc_now)
    activated_at: datetime | None = None
    updated_at: datetime = Field(default_factory=utc_now)
    updated_by: str | None = None
    update_source: Literal["ui", "api", "import", "ai", "system"] = "ui"

    schema_version: str = "1.0.0"
    config_hash: str


class AgentStatusSchema(RegistrySchema):
    """A lifecycle transition for one agent."""

    agent_id: str = Field(min_length=1)
    status: AgentStatus
    reason: str | None = Field(default=None, max_length=500)


# ─── Profile & Persona ────────────────────────────────────────────


class StyleSchema(RegistrySchema):
    visual: str | None = None
    writing: str | None = None
    communication: str | None = None


class ProfileSchema(RegistrySchema):
    agent_id: str
    statement: str = Field(max_length=500)
    bio: str | None = Field(default=None, max_length=2000)
    tagline: str = Field(max_length=100)
    tags: list[str] = Field(max_length=10)
    values: list[str] | None = Field(default=None, max_length=5)
    interests: list[str] | None = Field(default=None, max_length=10)
    expertise: list[str] | None = Field(default=None, max_length=10)
    inspirations: list[str] | None = Field(default=None, max_length=5)
    style: StyleSchema | None = None
    manifesto: str | None = None
    economic_data: dict[str, Any] | None = None
    updated_at: datetime = Field(default_factory=utc_now)


class VoiceTokens(RegistrySchema):
    tone: list[Literal["professional", "casual", "poetic", "academic", "skeptical", "sales"]]
    formality: RiskTolerance
    lexicon: Literal["simple", "standard", "technical"]
    humor: Literal["none", "dry", "playful", "wry"]
    rhetoric: Literal["guide", "critic", "seller", "sage"] | None = None


class PersonaSchema(RegistrySchema):
    agent_id: str
    public: str = Field(max_length=1000)
    private: str = Field(max_length=2000)
    voice: VoiceTokens
    boundaries: list[str] = Field(max_length=10)
    catchphrases: list[str] | None = Field(default=None, max_length=5)
    risk_tolerance: RiskTolerance


# ─── Lore ─────────────────────────────────────────────────────────


class MythologySchema(RegistrySchema):
    archetype: str | None = None
    questline: str | None = None
    achievements: list[str] | None = None


class WorldviewSchema(RegistrySchema):
    philosophy: str | None = None
    beliefs: list[str] | None = None
    questions: list[str] | None = None


class LoreSchema(RegistrySchema):
    agent_id: str
    origin: str = Field(max_length=500)
    purpose: str = Field(max_length=500)
    journey: str | None = Field(default=None, max_length=1000)
    mythology: MythologySchema | None = None
    worldview: WorldviewSchema | None = None


# ─── Economics ────────────────────────────────────────────────────


class PayoutPolicySchema(RegistrySchema):
    chain: Literal["base", "eth", "polygon", "arbitrum"]
    token: Literal["USDC", "ETH", "MATIC"]
    min: float = Field(gt=0)
    cadence: Literal["daily", "weekly", "monthly"]


class RevenueSplitSchema(RegistrySchema):
    address: str = Field(pattern=_ETH_ADDRESS)
    percentage: float = Field(ge=0, le=100)
    label: str
    role: Literal["primary", "curator", "infra", "charity"]


class PricingSchema(RegistrySchema):
    base_rate: float | None = None
    currency: Literal["USD", "ETH", "USDC"] | None = None
    accepted_tokens: list[str] | None = None


class TreasuryLimitSchema(RegistrySchema):
    category: Literal["inference", "media", "promo", "operations"]
    daily: float
    monthly: float


class TreasurySchema(RegistrySchema):
    target_balance: float | None = None
    limits: list[TreasuryLimitSchema] | None = None


class PatronageTierSchema(RegistrySchema):
    name: str
    price: float
    benefits: list[str]


class PatronageSchema(RegistrySchema):
    tiers: list[PatronageTierSchema] | None = None


class EconomicsSchema(RegistrySchema):
    agent_id: str
    wallet: str = Field(pattern=_ETH_ADDRESS)
    payout_policy: PayoutPolicySchema
    revenue_splits: list[RevenueSplitSchema]
    pricing: PricingSchema | None = None
    treasury: TreasurySchema | None = None
    patronage: PatronageSchema | None = None
    billing_contact: str | None = Field(default=None, pattern=_EMAIL)

    @field_validator("revenue_splits")
    @classmethod
    def _splits_sum_to_100(cls, splits: list[RevenueSplitSchema]) -> list[RevenueSplitSchema]:
        total = sum(s.percentage for s in splits)
        if abs(total - 100) > 1e-9:
            raise ValueError(f"Revenue splits must sum to exactly 100%, got {total:g}%")
        return splits


# ─── Practice Contract ────────────────────────────────────────────


class KpiSchema(RegistrySchema):
    name: str
    target: float
    unit: str


class PracticeContractSchema(RegistrySchema):
    id: str = Field(default_factory=new_id)
    agent_id: str
    name: str
    schedule_cron: str
    tz: str
    mediums: list[Literal["image", "video", "text", "audio", "3d", "code"]]
    daily_goal: str = Field(max_length=100)
    review_policy: Literal["manual", "assisted", "auto"]
    escalation_policy: str | None = None
    kpis: list[KpiSchema]
    grace_days: int = Field(default=1, ge=0, le=7)
    active: bool = True
    effective_from: datetime
    effective_to: datetime | None = None
    streak: int = 0
    last_tick: datetime | None = None

    @field_validator("schedule_cron")
    @classmethod
    def _valid_cron(cls, v: str) -> str:
        if not _CRON.match(v):
            raise ValueError(f"Invalid CRON expression: {v}")
        return v

    @field_validator("tz")
    @classmethod
    def _valid_tz(cls, v: str) -> str:
        return _check_timezone(v)


# ─── Capabilities ─────────────────────────────────────────────────


class CapabilityFlags(RegistrySchema):
    image_gen: bool
    video_gen: bool
    audio_gen: bool
    code_exec: bool
    web_browse: bool
    memory_persistence: bool


class ProviderSchema(RegistrySchema):
    chat_model: Literal["gpt-4o", "claude-3.5", "llama-3.1", "custom"] | None = None
    image_model: str | None = None
    audio_model: str | None = None
    video_model: str | None = None


class QuotaSchema(RegistrySchema):
    name: Literal["tokens", "images", "minutes", "requests"]
    per_day: float
    hard_cap: float | None = None


class SafetyPolicySchema(RegistrySchema):
    blocked_topics: list[str]
    risk_tolerance: RiskTolerance
    require_review: list[str] | None = None


class CapabilitySetSchema(RegistrySchema):
    agent_id: str
    capabilities: CapabilityFlags
    providers: ProviderSchema
    quotas: list[QuotaSchema]
    safety_policy: SafetyPolicySchema
    integrations: list[str]

    @model_validator(mode="after")
    def _quotas_cover_capabilities(self) -> CapabilitySetSchema:
        names = {q.name for q in self.quotas}
        if self.capabilities.image_gen and "images" not in names:
            raise ValueError("Image generation enabled but no image quota set")
        if (self.capabilities.video_gen or self.capabilities.audio_gen) and "minutes" not in names:
            raise ValueError("Media generation enabled but no minutes quota set")
        return self
