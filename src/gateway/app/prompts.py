"""Instruction prompt for form-field extraction."""

from typing import Sequence

from .schemas import PageSize

EXTRACTION_PROMPT_TEMPLATE = """Analyze these PDF form images and extract all form fields with their EXACT pixel coordinates.

PDF Page Dimensions:
{page_dimensions}

The images were rendered at {scale}x the page dimensions above.

For each field, measure the bounding box coordinates:
- x: distance from the LEFT edge of the page
- y: distance from the TOP edge of the page
- width: horizontal size of the field
- height: vertical size of the field

Return ONLY a valid JSON object with this exact structure (no markdown, no code blocks, just raw JSON):
{{
  "fields": [
    {{
      "name": "field name (use exact name from the form)",
      "value": "field value or empty string if blank",
      "type": "text|checkbox|radio|dropdown|date|email|phone|address|other",
      "label": "field label if visible",
      "pageNumber": 0,
      "confidence": 0.95,
      "coordinates": {{
        "x": 50,
        "y": 100,
        "width": 150,
        "height": 25
      }},
      "coordinates_norm": {{
        "x": 0.1,
        "y": 0.2,
        "width": 0.3,
        "height": 0.05
      }}
    }}
  ],
  "formTitle": "title of the form if present",
  "description": "brief description of what the form is for"
}}

"coordinates" are in the page dimensions listed above. "coordinates_norm" are fractions (0..1) of the rendered image width and height.
"pageNumber" is the 0-based index of the image the field appears on. Every field name must be unique.

CRITICAL: Coordinates must be precise and measured from the top-left corner. Do NOT include any padding or margins in your measurements.

Also include a confidence score (0..1) for each detected field where possible.

Analyze all the images below for form fields:"""


def build_extraction_prompt(dimensions: Sequence[PageSize], scale: float) -> str:
    page_lines = "\n".join(
        f"Page {i + 1}: {dims.width:g}px width × {dims.height:g}px height"
        for i, dims in enumerate(dimensions)
    )
    return EXTRACTION_PROMPT_TEMPLATE.format(
        page_dimensions=page_lines or "(not provided)",
        scale=f"{scale:g}",
    )
