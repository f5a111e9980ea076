"""Instruction template sent to the model for every analysis."""
from __future__ import annotations

SYSTEM_PROMPT = (
    "You are RESEARCH-WEB, an expert web intelligence analyst. "
    "Return ONLY strict JSON. Do not include markdown, prose, or code fences."
)

REPORT_SCHEMA = """{
  "site": {
    "url": "string",
    "title": "string",
    "description": "string",
    "language": "string",
    "frameworks": ["string"],
    "libraries": ["string"],
    "cms": "string | null",
    "runtime": "string | null",
    "hosting": "string | null",
    "cdn": "string | null",
    "analytics": ["string"],
    "tag_managers": ["string"],
    "seo": {
      "meta_title": "string",
      "meta_description": "string",
      "h1": "string | null",
      "canonical": "string | null",
      "schema_org": ["string"]
    },
    "performance": {
      "page_weight_kb": "number",
      "image_optimization": "string",
      "lazy_loading": "boolean",
      "script_count": "number",
      "notable_third_parties": ["string"]
    },
    "ads": {
      "has_ads": "boolean",
      "ad_networks": ["string"],
      "placements": ["string"]
    },
    "monetization": {
      "models": ["string"],
      "subscriptions": "boolean",
      "affiliate": "boolean",
      "ecommerce": "boolean"
    },
    "privacy_security": {
      "cookie_banner": "boolean",
      "gdpr_ccpa_mentions": ["string"],
      "security_headers": ["string"]
    },
    "audience": {
      "target_segments": ["string"],
      "regions": ["string"]
    },
    "competitors": ["string"],
    "traffic_estimate": {
      "confidence": "low | medium | high",
      "monthly_visits_range": "string"
    },
    "contact": {
      "emails": ["string"],
      "phones": ["string"],
      "socials": ["string"]
    },
    "key_features": ["string"],
    "summary": "string",
    "recommendations": ["string"]
  }
}"""

RULES = """Rules:
- Base findings ONLY on provided HTML and URL; infer cautiously and mark confidence via 'traffic_estimate.confidence'.
- Populate arrays with distinct items; avoid duplicates.
- If unknown, use null or empty array appropriately.
- Keep descriptions concise and concrete.
- Ensure valid JSON and correct types."""

HTML_BEGIN = "HTML BEGIN"
HTML_END = "HTML END"


def build_prompt(url: str, html: str) -> list[dict[str, str]]:
    user = f"""Analyze the following website using its URL and raw HTML.
URL: {url}

Return a strict JSON object with this schema:

{REPORT_SCHEMA}

{RULES}

{HTML_BEGIN}
{html}
{HTML_END}"""

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]
