"""Simulated voice conversion.

STUB: there is no conversion engine. The step waits a fixed delay and
derives the processed filename; the audio itself is left untouched.
"""

import asyncio

PROCESSED_PREFIX = "processed_"


def processed_filename_for(original_filename: str) -> str:
    return f"{PROCESSED_PREFIX}{original_filename}"


async def simulate_voice_conversion(original_filename: str, delay_seconds: float) -> str:
    """Wait ``delay_seconds`` and return the name the converted file would have."""
    await asyncio.sleep(delay_seconds)
    return processed_filename_for(original_filename)
