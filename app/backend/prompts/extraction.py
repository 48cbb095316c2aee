SYSTEM_PROMPT = (
    "You extract text from documents. Reply with the document text only, "
    "with no commentary, summary, or formatting of your own."
)

USER_PROMPT_TEMPLATE = """Extract all of the text from the attached document "{document_name}" verbatim.
Keep the original reading order. Separate pages or slides with a blank line.
If the document contains no readable text, reply with an empty message."""
