"""Prompt text for itinerary generation."""


def build_itinerary_prompt(destination: str, duration_days: int) -> str:
    return (
        f"Generate a structured travel itinerary for a trip to {destination} "
        f"lasting {duration_days} days. "
        "The response must be a JSON object with an `itinerary` field containing "
        "an array of daily plans. Each day includes: "
        "- day (number): The day number "
        "- theme (string): A descriptive theme for the day "
        "- activities (array): List of activities for the day. "
        "Each activity must specify: "
        "- time (string): The time of the activity "
        "- description (string): What the activity involves "
        "- location (string): Where the activity takes place. "
        "Return ONLY the JSON object, no other text."
    )
