"""Instructions and response schemas sent to the generative-AI service"""

RESEARCH_INSTRUCTION = (
    "You are INTELIGENT MUNGA, an ultra-advanced strategic AI. Structure insights with "
    "'Tactical Summary', 'Deep Analysis', and 'Strategic Conclusion'."
)

MARKET_INSTRUCTION = (
    "You are INTELIGENT MUNGA's Market Analysis Core. Provide sharp, data-driven market insights."
)

PREDICTION_INSTRUCTION = (
    "You are a world-class data scientist and strategist. Provide data-driven insights."
)


def market_scan_prompt(sector: str) -> str:
    return (
        f"Perform a high-level market intelligence scan for the sector: {sector}. "
        "Include 'Current Trends', 'Leading Competitors', 'Disruptive Technologies', and "
        "'Future Forecast'. Structure it professionally."
    )


def image_prompt(prompt: str) -> str:
    return (
        f"High-quality, professional conceptual image for: {prompt}. "
        "Cinematic, detailed, corporate style."
    )


def prediction_prompt(stats: str) -> str:
    return (
        "Analyze these statistics and provide a structured recap, predictions, and "
        f"viability analysis: {stats}"
    )


def roadmap_prompt(objective: str) -> str:
    return f"Generate a detailed strategic roadmap for: {objective}"


PREDICTION_SCHEMA = {
    "type": "object",
    "properties": {
        "recap": {"type": "string"},
        "predictions": {
            "type": "array",
            "items": {"type": "string"},
            "description": "A list of predicted outcomes as strings.",
        },
        "viabilityRating": {
            "type": "number",
            "description": "Overall viability from 0 to 100.",
        },
        "recommendations": {
            "type": "array",
            "items": {"type": "string"},
            "description": "A list of strategic recommendations as strings.",
        },
    },
    "required": ["recap", "predictions", "viabilityRating", "recommendations"],
    "additionalProperties": False,
}

ROADMAP_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "phases": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "tasks": {"type": "array", "items": {"type": "string"}},
                    "duration": {"type": "string"},
                },
            },
        },
        "riskAssessment": {"type": "string"},
    },
}
