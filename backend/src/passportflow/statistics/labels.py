"""Display labels for codes stored on applications.

Codes missing from a table are shown verbatim.
"""

from types import MappingProxyType
from typing import Mapping, Optional

UNKNOWN_LABEL = "Unknown"

TRAVEL_DOCUMENT_LABELS: Mapping[str, str] = MappingProxyType({
    "all": "All Countries",
    "middleEast": "Middle East Only",
    "emergencyCertificate": "Emergency Certificate",
    "identityCertificate": "Identity Certificate",
})

DISTRICT_LABELS: Mapping[str, str] = MappingProxyType({
    "CMB": "Colombo",
    "GMP": "Gampaha",
    "KLT": "Kalutara",
    "KND": "Kandy",
    "MTL": "Matale",
    "NWE": "Nuwara Eliya",
    "GLL": "Galle",
    "MTR": "Matara",
    "HMB": "Hambantota",
    "JAF": "Jaffna",
    "KIL": "Kilinochchi",
    "MNR": "Mannar",
    "VAV": "Vavuniya",
    "MUL": "Mullaitivu",
    "BAT": "Batticaloa",
    "AMP": "Ampara",
    "TRC": "Trincomalee",
    "KUR": "Kurunegala",
    "PTM": "Puttalam",
    "ANU": "Anuradhapura",
    "POL": "Polonnaruwa",
    "BAD": "Badulla",
    "MON": "Monaragala",
    "RAT": "Ratnapura",
    "KEG": "Kegalle",
})


def label_for(code: Optional[str], labels: Mapping[str, str]) -> str:
    if code is None or code == "":
        return UNKNOWN_LABEL
    return labels.get(code, code)
