VERDICT_PROMPT = """You are a rigorous, neutral fact-checking assistant.
Given a user claim, extracted source text from web pages and optional additional evidence, determine:
- Verdict: True / Mostly True / Mixed / Mostly False / False / Unverifiable
- Rationale: concise, cite specific evidence
- Citations: list the most relevant source URLs
- Confidence: an integer from 0 to 100 describing how sure you are of the verdict

Claim:
{claim}

Source text:
{source_text}

Additional evidence:
{extra_evidence}

Return ONLY a valid JSON object (no markdown, no explanation):
{{
  "verdict": "True|Mostly True|Mixed|Mostly False|False|Unverifiable",
  "rationale": "...",
  "citations": ["https://..."],
  "confidence": 80
}}
"""

SUMMARY_PROMPT = """Summarize the following source text into 3 to 5 short, neutral bullet points.
Each bullet must state one concrete fact from the text. Do not add opinions.

Source text:
"{text}"

Return ONLY a valid JSON array of strings (no markdown, no explanation):
["first point", "second point"]
"""

IMAGE_INSIGHT_PROMPT = """You are helping a fact-checker. Describe what the attached image shows
that is relevant to the claim below: visible text, people, places, logos, signs of editing
or whether the image appears to be a stock, meme or screenshot.

Claim: "{claim}"

Respond in at most 3 sentences of plain text.
"""
