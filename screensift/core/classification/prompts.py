"""Prompt text for the screenshot classifier."""

CLASSIFICATION_PROMPT = """Analyze this screenshot and classify it according to these rules:

CLASSIFICATION RULES:
- Code/terminal screenshots -> folder "Dev", keep permanently
- Memes/social media -> folder "Social", delete after 7 days
- Important docs/receipts -> folder "Documents", keep permanently
- Error messages/bugs -> folder "Bugs", keep permanently
- Temporary/junk content -> folder "Temp", delete immediately

INSTRUCTIONS:
1. Extract ALL visible text from the screenshot
2. Classify the screenshot type based on content
3. Determine the retention policy
4. Set importance level (critical for docs/receipts, high for dev/bugs, low for social/temp)
5. Assign one or more free-form categories and the folder category

Respond with ONLY a JSON object with these keys:
{
  "is_important": <true|false>,
  "confidence": <0.0-1.0>,
  "categories": [<category names>],
  "category_confidences": {<category name>: <0.0-1.0>},
  "description": "<one sentence>",
  "extracted_text": "<all visible text>",
  "content_type": "dev|social|documents|bugs|temp|other",
  "folder_category": "Dev|Social|Documents|Bugs|Temp",
  "retention_policy": "keep|delete_after_7_days|delete_immediately",
  "importance_level": "critical|high|medium|low"
}"""
