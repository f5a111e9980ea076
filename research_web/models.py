from __future__ import annotations

import logging
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_list(value: Any) -> list[Any]:
    """Scalars become one-item lists; nulls, blanks and repeats are dropped."""
    if _is_blank(value):
        return []
    items = value if isinstance(value, list) else [value]
    out: list[Any] = []
    for item in items:
        if _is_blank(item):
            continue
        if isinstance(item, str):
            item = item.strip()
        if item not in out:
            out.append(item)
    return out


def _as_number(value: Any) -> Any:
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        # e.g. "1.2 MB"; kept verbatim
        return value


def _as_confidence(value: Any) -> Any:
    if _is_blank(value):
        return None
    if not isinstance(value, str):
        return value
    c = value.strip().lower()
    if c in ("med", "mid"):
        c = "medium"
    return c if c in ("low", "medium", "high") else value.strip()


def _as_flag(value: Any) -> Any:
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in ("true", "yes", "1"):
        return True
    if s in ("false", "no", "0"):
        return False
    return value


def _as_object(value: Any) -> Any:
    return {} if value is None else value


def _as_optional_str(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


AnyList = Annotated[list[Any], BeforeValidator(_as_list)]
Number = Annotated[Any, BeforeValidator(_as_number)]
OptStr = Annotated[Any, BeforeValidator(_as_optional_str)]
Flag = Annotated[Any, BeforeValidator(_as_flag)]


class _Lenient(BaseModel):
    # Model output may omit fields or add its own; keep both workable.
    model_config = ConfigDict(extra="allow")


class SEOInfo(_Lenient):
    meta_title: OptStr = None
    meta_description: OptStr = None
    h1: OptStr = None
    canonical: OptStr = None
    schema_org: AnyList = Field(default_factory=list)


class PerformanceInfo(_Lenient):
    page_weight_kb: Number = None
    image_optimization: OptStr = None
    lazy_loading: Flag = None
    script_count: Number = None
    notable_third_parties: AnyList = Field(default_factory=list)


class AdsInfo(_Lenient):
    has_ads: Flag = None
    ad_networks: AnyList = Field(default_factory=list)
    placements: AnyList = Field(default_factory=list)


class MonetizationInfo(_Lenient):
    models: AnyList = Field(default_factory=list)
    subscriptions: Flag = None
    affiliate: Flag = None
    ecommerce: Flag = None


class PrivacySecurityInfo(_Lenient):
    cookie_banner: Flag = None
    gdpr_ccpa_mentions: AnyList = Field(default_factory=list)
    security_headers: AnyList = Field(default_factory=list)


class AudienceInfo(_Lenient):
    target_segments: AnyList = Field(default_factory=list)
    regions: AnyList = Field(default_factory=list)


class TrafficEstimate(_Lenient):
    confidence: Annotated[Any, BeforeValidator(_as_confidence)] = None
    monthly_visits_range: OptStr = None


class ContactInfo(_Lenient):
    emails: AnyList = Field(default_factory=list)
    phones: AnyList = Field(default_factory=list)
    socials: AnyList = Field(default_factory=list)


class Site(_Lenient):
    url: OptStr = None
    title: OptStr = None
    description: OptStr = None
    language: OptStr = None
    frameworks: AnyList = Field(default_factory=list)
    libraries: AnyList = Field(default_factory=list)
    cms: OptStr = None
    runtime: OptStr = None
    hosting: OptStr = None
    cdn: OptStr = None
    analytics: AnyList = Field(default_factory=list)
    tag_managers: AnyList = Field(default_factory=list)
    seo: Annotated[SEOInfo, BeforeValidator(_as_object)] = Field(default_factory=SEOInfo)
    performance: Annotated[PerformanceInfo, BeforeValidator(_as_object)] = Field(default_factory=PerformanceInfo)
    ads: Annotated[AdsInfo, BeforeValidator(_as_object)] = Field(default_factory=AdsInfo)
    monetization: Annotated[MonetizationInfo, BeforeValidator(_as_object)] = Field(default_factory=MonetizationInfo)
    privacy_security: Annotated[PrivacySecurityInfo, BeforeValidator(_as_object)] = Field(default_factory=PrivacySecurityInfo)
    audience: Annotated[AudienceInfo, BeforeValidator(_as_object)] = Field(default_factory=AudienceInfo)
    competitors: AnyList = Field(default_factory=list)
    traffic_estimate: Annotated[TrafficEstimate, BeforeValidator(_as_object)] = Field(default_factory=TrafficEstimate)
    contact: Annotated[ContactInfo, BeforeValidator(_as_object)] = Field(default_factory=ContactInfo)
    key_features: AnyList = Field(default_factory=list)
    summary: OptStr = None
    recommendations: AnyList = Field(default_factory=list)


class SiteReport(_Lenient):
    site: Site


def normalize_report(raw: Any) -> Any:
    """Fill in and coerce a model report; non-report JSON passes through as-is."""
    if not isinstance(raw, dict) or not isinstance(raw.get("site"), dict):
        return raw
    try:
        return SiteReport.model_validate(raw).model_dump(mode="json")
    except ValidationError as e:
        logger.warning("model report does not fit the site schema, returning it unchanged: %s", e)
        return raw


class AnalyzeRequest(BaseModel):
    url: str = ""


class AnalyzeResponse(BaseModel):
    cached: bool
    data: Any


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    ok: bool = True
