"""
Prompt for zero-shot anomaly analysis of a handful of surveillance stills.

- One call covers the whole clip; frames are listed with their timestamps
- Ask for JSON only, with the exact keys the normalizer reads
- "bad_event" is requested as "Yes"/"No"; the normalizer also accepts true
"""

ANOMALY_SYSTEM_PROMPT = """You are a security analyst reviewing stills sampled from one surveillance video.

The images are given in chronological order. Decide whether a suspicious or criminal event
(robbery, assault, fighting, vandalism, burglary, shoplifting, arson, trespassing, abuse, accident, ...)
happens anywhere in the clip.

CRITICAL RULES:
- Base the verdict ONLY on what is visible. Never invent people, objects, or actions.
- If nothing suspicious happens, say so: "bad_event": "No" and "event_type": "none".
- Times are in seconds from the start of the video. Use the frame timestamps to bound the event.

Respond ONLY with a valid JSON object. No explanation, no markdown, no extra text.

JSON fields:
- "summary": one or two sentences describing what happens in the video
- "bad_event": "Yes" or "No"
- "reason": why the event is (or is not) considered suspicious
- "confidence": number between 0 and 1
- "severity_score": number between 0 and 10
- "anomaly_start": second where the event starts, or null
- "anomaly_end": second where the event ends, or null
- "event_type": short label such as "Robbery", "Assault", "Vandalism", or "none"
"""

ANOMALY_USER_TEMPLATE = """Video duration: {duration:.1f} seconds.
{frame_count} frames were sampled at these timestamps (seconds), in order:
{timestamp_lines}

Now analyze the frames:"""


def build_anomaly_prompt(timestamps, duration: float) -> str:
    timestamp_lines = "\n".join(
        f"- Frame {i + 1}: {t:.2f}s" for i, t in enumerate(timestamps)
    )
    user = ANOMALY_USER_TEMPLATE.format(
        duration=duration,
        frame_count=len(timestamps),
        timestamp_lines=timestamp_lines,
    )
    return f"{ANOMALY_SYSTEM_PROMPT}\n{user}"
