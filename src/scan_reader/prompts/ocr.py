"""
Prompt for vision-model text recognition.

Kept apart from the client code so the wording can be tuned without touching
the recognizer.
"""

OCR_INSTRUCTION = """\
Transcribe all text on this scanned book page exactly as written.

Rules:
1. The page is most likely Urdu, Arabic or Persian, possibly mixed with English.
2. Preserve the original script. Do NOT translate, transliterate or summarise.
3. Keep the reading order of the page: right-to-left lines for Arabic-script
   text, one output line per printed line.
4. Omit page furniture you cannot read; never guess missing words.
5. If the page has no readable text, return an empty response.

Return only the transcribed text, with no commentary or formatting.
"""
