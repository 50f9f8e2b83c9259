"""PULSE — Audit Rule Batteries.

Each rule is a tagged (key, label, predicate, reason) entry evaluated
uniformly by the audit engine. Campaign rules read CampaignAuditRow,
audience rules read AudienceAuditRow.
"""

import math
import re
from typing import Callable, List, NamedTuple, Optional

from app.core.parsing import parse_audit_number, parse_float
from app.models.records import AudienceAuditRow, CampaignAuditRow


class AuditRule(NamedTuple):
    key: str
    label: str
    predicate: Callable[..., bool]
    reason: Optional[Callable[..., str]] = None


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _js_number(value: float) -> str:
    """5.0 → "5", 0.45 → "0.45" (how the sheet shows the value)."""
    return str(int(value)) if float(value).is_integer() else repr(value)


def _whole_percent(value: float) -> str:
    """62.5 → "63" (halves round up)."""
    return str(math.floor(value + 0.5))


# ─────────────────────────────────────────────
# CAMPAIGN HYGIENE
# ─────────────────────────────────────────────

MIN_DAILY_BUDGET = 10.0
MIN_MAX_CPC = 1.0
MIN_OPTIMIZATION_SCORE = 70.0
FRACTIONAL_SCORE_CEILING = 1.5
EXTREME_DEVICE_ADJUSTMENT = -90

_SIGNED_INT = re.compile(r"-?\d+")
_LANGUAGE_TOKEN = re.compile(r"\bL[-_]?([A-Za-z]{2})\b")
_LETTERS_ONLY = re.compile(r"[^a-z]")

# ISO-639-1 code → language name as the ads platform spells it.
LANGUAGE_MAP = {
    "af": "Afrikaans", "sq": "Albanian", "am": "Amharic", "ar": "Arabic",
    "hy": "Armenian", "az": "Azerbaijani", "eu": "Basque", "be": "Belarusian",
    "bn": "Bengali", "bs": "Bosnian", "bg": "Bulgarian", "ca": "Catalan",
    "ceb": "Cebuano", "ny": "Chichewa", "zh": "Chinese", "co": "Corsican",
    "hr": "Croatian", "cs": "Czech", "da": "Danish", "nl": "Dutch",
    "en": "English", "eo": "Esperanto", "et": "Estonian", "tl": "Filipino",
    "fi": "Finnish", "fr": "French", "fy": "Frisian", "gl": "Galician",
    "ka": "Georgian", "de": "German", "el": "Greek", "gu": "Gujarati",
    "ht": "Haitian Creole", "ha": "Hausa", "haw": "Hawaiian", "he": "Hebrew",
    "hi": "Hindi", "hmn": "Hmong", "hu": "Hungarian", "is": "Icelandic",
    "ig": "Igbo", "id": "Indonesian", "ga": "Irish", "it": "Italian",
    "ja": "Japanese", "jw": "Javanese", "kn": "Kannada", "kk": "Kazakh",
    "km": "Khmer", "rw": "Kinyarwanda", "ko": "Korean",
    "ku": "Kurdish (Kurmanji)", "ky": "Kyrgyz", "lo": "Lao", "la": "Latin",
    "lv": "Latvian", "lt": "Lithuanian", "lb": "Luxembourgish",
    "mk": "Macedonian", "mg": "Malagasy", "ms": "Malay", "ml": "Malayalam",
    "mt": "Maltese", "mi": "Maori", "mr": "Marathi", "mn": "Mongolian",
    "my": "Myanmar (Burmese)", "ne": "Nepali", "no": "Norwegian",
    "or": "Odia (Oriya)", "ps": "Pashto", "fa": "Persian", "pl": "Polish",
    "pt": "Portuguese", "pa": "Punjabi", "ro": "Romanian", "ru": "Russian",
    "sm": "Samoan", "gd": "Scots Gaelic", "sr": "Serbian", "st": "Sesotho",
    "sn": "Shona", "sd": "Sindhi", "si": "Sinhala", "sk": "Slovak",
    "sl": "Slovenian", "so": "Somali", "es": "Spanish", "su": "Sundanese",
    "sw": "Swahili", "sv": "Swedish", "tg": "Tajik", "ta": "Tamil",
    "tt": "Tatar", "te": "Telugu", "th": "Thai", "tr": "Turkish",
    "tk": "Turkmen", "uk": "Ukrainian", "ur": "Urdu", "ug": "Uyghur",
    "uz": "Uzbek", "vi": "Vietnamese", "cy": "Welsh", "xh": "Xhosa",
    "yi": "Yidish", "yo": "Yoruba", "zu": "Zulu",
}


def is_enabled_campaign(row: CampaignAuditRow) -> bool:
    return _norm(row.campaign_status) == "enabled"


def optimization_score(row: CampaignAuditRow) -> float:
    """Score on a 0–100 scale; exports mix 0.65 and 65 for the same thing."""
    score = parse_audit_number(row.optimization_score)
    if 0 < score <= FRACTIONAL_SCORE_CEILING:
        score *= 100
    return score


def _is_search(row: CampaignAuditRow) -> bool:
    return _norm(row.campaign_type) == "search"


def _under_budget(row: CampaignAuditRow) -> bool:
    return 0 < parse_audit_number(row.daily_budget) < MIN_DAILY_BUDGET


def _extreme_device(row: CampaignAuditRow) -> bool:
    values = [int(v) for v in _SIGNED_INT.findall(row.device_adjustment or "")]
    return len(values) >= 3 and all(
        v <= EXTREME_DEVICE_ADJUSTMENT for v in values[:3]
    )


def _rotate_forever(row: CampaignAuditRow) -> bool:
    return _norm(row.ad_rotation) == "rotate_forever"


def _low_cpc(row: CampaignAuditRow) -> bool:
    return 0 < parse_audit_number(row.max_cpc) < MIN_MAX_CPC


def _low_opti(row: CampaignAuditRow) -> bool:
    return 0 < optimization_score(row) < MIN_OPTIMIZATION_SCORE


def _display_select(row: CampaignAuditRow) -> bool:
    return _is_search(row) and _norm(row.display_select) == "yes"


def _disapproved(row: CampaignAuditRow) -> bool:
    value = (row.disapproved_ads or "").strip()
    return bool(value) and value != "0"


def _zero_ads(row: CampaignAuditRow) -> bool:
    return _is_search(row) and parse_audit_number(row.active_ads) == 0


def expected_language(campaign_name: str) -> Optional[str]:
    """Language named by an ``L-XX`` token in the campaign name, if any."""
    m = _LANGUAGE_TOKEN.search(campaign_name or "")
    if not m:
        return None
    return LANGUAGE_MAP.get(m.group(1).lower())


def _lang_mismatch(row: CampaignAuditRow) -> bool:
    expected = expected_language(row.campaign_name)
    if not expected:
        return False
    wanted = _LETTERS_ONLY.sub("", expected.lower())
    targeted = _LETTERS_ONLY.sub("", (row.language or "").lower())
    return bool(wanted) and wanted not in targeted


CAMPAIGN_RULES: List[AuditRule] = [
    AuditRule(
        "under_budget",
        "Under Budget",
        _under_budget,
        lambda r: f"${_js_number(parse_audit_number(r.daily_budget))} Budget",
    ),
    AuditRule(
        "device_negatives",
        "Extreme Device Adjustments",
        _extreme_device,
        lambda r: "Extreme -90%+ Adjustments",
    ),
    AuditRule(
        "rotate_forever", "Rotate Forever", _rotate_forever, lambda r: "Rotation: Forever"
    ),
    AuditRule(
        "low_cpc",
        "Low Max CPC",
        _low_cpc,
        lambda r: f"${_js_number(parse_audit_number(r.max_cpc))} CPC",
    ),
    AuditRule(
        "low_opti",
        "Low Optimization Score",
        _low_opti,
        lambda r: f"{_whole_percent(optimization_score(r))}% Score",
    ),
    AuditRule(
        "display_select",
        "Display Select ON",
        _display_select,
        lambda r: "Display Select ON",
    ),
    AuditRule(
        "disapproved",
        "Policy Violations",
        _disapproved,
        lambda r: (r.disapproved_ads or "").strip(),
    ),
    AuditRule("zero_ads", "Zero Active Ads", _zero_ads, lambda r: "Zero Ads"),
    AuditRule(
        "lang_mismatch",
        "Language Mismatch",
        _lang_mismatch,
        lambda r: f"Camp: {expected_language(r.campaign_name)}, Target: {r.language}",
    ),
]


# ─────────────────────────────────────────────
# AUDIENCE HYGIENE
# ─────────────────────────────────────────────

NO_AUDIENCE = "no audience is added"

# Automated campaign types (PMax, Demand Gen) manage their own audiences.
EXCLUDED_CAMPAIGN_KEYWORDS = (
    "PLBPMTG",
    "PLDPM",
    "DLBPM",
    "HLDPM",
    "PERFORMANCEMAX",
    "DEMANDGEN",
    "PMAX",
    "PLBPM",
    "HLBPM",
)

REMARKETING_PATTERN = re.compile(
    r"(RLSA|PLBRL|HLBRL|DLGRL|PLDPM|PLBPM|HLBPM|HLDRM|PLDRM|HLGRL|DLDRM|DRM|DLBRL|PLGRL)",
    re.IGNORECASE,
)


def is_manual_audience_campaign(row: AudienceAuditRow) -> bool:
    name = (row.campaign_name or "").upper()
    return not any(kw in name for kw in EXCLUDED_CAMPAIGN_KEYWORDS)


def is_remarketing_campaign(campaign_name: str) -> bool:
    return bool(REMARKETING_PATTERN.search(campaign_name or ""))


def _no_audience(row: AudienceAuditRow) -> bool:
    return bool(row.audience) and _norm(row.audience) == NO_AUDIENCE


def _zero_search(row: AudienceAuditRow) -> bool:
    return (
        parse_float(row.search_size) == 0
        and bool(row.audience)
        and _norm(row.audience) != NO_AUDIENCE
    )


def _targeting_without_rlsa(row: AudienceAuditRow) -> bool:
    return row.audience_setting == "Targeting" and not is_remarketing_campaign(
        row.campaign_name
    )


def _observation_with_rlsa(row: AudienceAuditRow) -> bool:
    return row.audience_setting == "Observation" and is_remarketing_campaign(
        row.campaign_name
    )


def _closed_membership(row: AudienceAuditRow) -> bool:
    return row.membership_status == "CLOSED" and bool(row.audience)


AUDIENCE_RULES: List[AuditRule] = [
    AuditRule("search_size_zero", "Zero Search Size", _zero_search),
    AuditRule(
        "targeting_without_remarketing",
        "Targeting Without Remarketing",
        _targeting_without_rlsa,
    ),
    AuditRule(
        "observation_with_rlsa", "Observation With RLSA", _observation_with_rlsa
    ),
    AuditRule("no_audience_added", "No Audience Added", _no_audience),
    AuditRule("closed_membership", "Closed Membership", _closed_membership),
]
