"""Prompt text and response schema sent to the market data providers."""
from datetime import date

SYSTEM_PROMPT = (
    "You are a helpful financial assistant. You MUST return data in valid JSON "
    "format only, with no markdown formatting."
)

SHARE_TYPES = [
    "Foreign Employment",
    "Project Affected Locals",
    "General Public",
    "Mutual Funds",
]


def build_prompt(today: date | None = None) -> str:
    """Search instructions for the current IPO market in Nepal."""
    today = today or date.today()
    share_types = "\n".join(f"{i}. \"{name}\"" for i, name in enumerate(SHARE_TYPES, start=1))
    return f"""
Current Date: {today.strftime("%a %b %d %Y")}.
Task: Search the internet for the absolute latest IPO (Initial Public Offering) data in Nepal
from sources like "Sharesansar", "MeroLagani", "Nepali Paisa", and "CDSC".

CRITICAL REQUIREMENT:
You must distinguish between different "Share Types" / "Target Groups".
Do not just list "General Public" IPOs. You must explicitly find IPOs for:
{share_types}

If a company has an IPO open specifically for "Foreign Employment", list it as a SEPARATE entry.

Find information about:
1. IPOs currently open for subscription.
2. IPOs approved by SEBON but not yet open.
3. Recently closed IPOs.

For each company, EXTRACT:
- Company Name & Sector
- Share Type (e.g., "Foreign Employment", "General Public").
- Total Units & Price
- Opening and Closing dates
- Status (OPEN, COMING_SOON, CLOSED)
- Description
- Min/Max Units
- Rating, Project Info, Risks.

Also provide a 1-sentence market news summary.
""".strip()


JSON_SHAPE_INSTRUCTIONS = """
RETURN JSON ONLY matching this structure:
{
  "newsSummary": "string",
  "ipos": [
    {
      "companyName": "string",
      "sector": "string",
      "shareType": "string",
      "units": number,
      "price": number,
      "openingDate": "string",
      "closingDate": "string",
      "status": "OPEN" | "COMING_SOON" | "CLOSED",
      "description": "string",
      "minUnits": number,
      "maxUnits": number,
      "rating": "string",
      "projectDescription": "string",
      "risks": "string",
      "sourceUrl": "string"
    }
  ]
}
""".strip()


RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "newsSummary": {"type": "STRING"},
        "ipos": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "companyName": {"type": "STRING"},
                    "sector": {"type": "STRING"},
                    "shareType": {
                        "type": "STRING",
                        "description": "e.g. Foreign Employment, General Public, Locals",
                    },
                    "units": {"type": "NUMBER"},
                    "price": {"type": "NUMBER"},
                    "openingDate": {"type": "STRING"},
                    "closingDate": {"type": "STRING"},
                    "status": {
                        "type": "STRING",
                        "enum": ["OPEN", "COMING_SOON", "CLOSED", "LISTED"],
                    },
                    "description": {"type": "STRING"},
                    "minUnits": {"type": "NUMBER"},
                    "maxUnits": {"type": "NUMBER"},
                    "rating": {"type": "STRING"},
                    "projectDescription": {"type": "STRING"},
                    "risks": {"type": "STRING"},
                    "sourceUrl": {"type": "STRING"},
                },
            },
        },
    },
}
