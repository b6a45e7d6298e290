"""Prompt library for naming, folder planning, duplicate detection and OCR.

Prompts are plain templates with ``{variable}`` placeholders. Builders below
assemble the variable parts (file listings, naming preferences, tier hints)
and render the templates.

Example:
    >>> prompt = build_naming_prompt("Quarterly results...", "scan_001.pdf", "pdf")
    >>> system = NAMING_SYSTEM_PROMPT
"""

import logging
import string
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models.data_structures import FileDescriptor

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 2000
MAX_PREVIEW_CHARS = 100
DEFAULT_OCR_METHOD = "smart-naming"


class PromptRenderError(Exception):
    """Raised when prompt rendering fails."""

    def __init__(self, template_name: str, missing_vars: List[str]):
        self.template_name = template_name
        self.missing_vars = missing_vars
        super().__init__(
            f"Failed to render prompt '{template_name}' (missing variables: {missing_vars})"
        )


@dataclass(frozen=True)
class PromptTemplate:
    """Prompt template definition.

    Attributes:
        name: Unique identifier for the prompt use case.
        template: Prompt text with {variable} placeholders.
    """

    name: str
    template: str

    @property
    def variables(self) -> List[str]:
        return [
            field_name
            for _, field_name, _, _ in string.Formatter().parse(self.template)
            if field_name
        ]

    def render(self, values: Mapping[str, Any]) -> str:
        missing = [var for var in self.variables if var not in values]
        if missing:
            raise PromptRenderError(self.name, missing)
        return self.template.format(**values)


# ============================================================================
# System prompts
# ============================================================================

NAMING_SYSTEM_PROMPT = (
    "You are a file naming expert. Generate descriptive, professional file names "
    "based on content analysis. Always respond with valid JSON."
)

FOLDER_SYSTEM_PROMPT = (
    "You are a file organization expert. Create logical folder structures and "
    "naming conventions. Always respond with valid JSON."
)

DUPLICATE_SYSTEM_PROMPT = (
    "You are a file management expert. Identify duplicate files and naming "
    "conflicts. Always respond with valid JSON."
)

IMAGE_ANALYSIS_SYSTEM_PROMPT = (
    "You are a document analyst. Describe images briefly and factually."
)


# ============================================================================
# Templates
# ============================================================================

NAMING_TEMPLATE = PromptTemplate(
    name="suggest_name",
    template="""Analyze the following file content and generate a descriptive, professional filename.

Original filename: {file_name}
File type: {file_type}
{instructions}
File content summary:
{content}

Respond with a JSON object containing:
- suggestedName: the new filename (without extension)
- confidence: a number from 0-1 indicating confidence
- reasoning: brief explanation of the naming choice""",
)

FOLDER_TEMPLATE = PromptTemplate(
    name="folder_plan",
    template="""Analyze these files and create a folder organization plan:

Files:
{file_list}

User preferences: {user_rules}

Plan tier: {plan_tier}

Create a JSON response with:
- folder_plan: object containing root_folder_label, folders array, and file_routing array
- upgrade_recommendation: object with suggested_plan and reason

For {plan_tier} tier:
{tier_guidance}""",
)

DUPLICATE_TEMPLATE = PromptTemplate(
    name="detect_duplicates",
    template="""I need you to analyze these files and identify potential duplicates or naming conflicts:
{file_list}

Please identify groups of files that might be duplicates or have confusing similar names,
and suggest unique naming strategies for each group.

Return your response as a JSON object with the following format:
{{
  "duplicateGroups": [
    {{
      "files": ["filename1", "filename2"],
      "recommendation": "Recommendation for how to rename these files uniquely"
    }}
  ],
  "summary": "Brief summary of your analysis"
}}""",
)

IMAGE_ANALYSIS_TEMPLATE = PromptTemplate(
    name="image_analysis",
    template=(
        "Describe this image in one or two sentences for file organization. "
        "Mention the document type and main subject.{hint}"
    ),
)

OCR_METHOD_PROMPTS: Dict[str, str] = {
    "extract-title": (
        "Extract the main title or heading from this document. "
        "Return only the title text, nothing else."
    ),
    "extract-content": (
        "Summarize the main content of this document in 2-3 sentences. "
        "Focus on the key topics and purpose."
    ),
    "extract-metadata": (
        "Extract metadata from this document including: author, date, document type, "
        "subject matter. Format as key-value pairs."
    ),
    "smart-naming": (
        "Analyze this document and extract the most important information that would "
        "be useful for creating a descriptive filename. Include the main topic, "
        "document type, and any relevant identifiers."
    ),
}

FORMS_AND_TABLES_SUFFIX = (
    " Additionally, identify any form fields, tables, or structured data."
)

_TIER_GUIDANCE = {
    "free": "- Use simple, shallow folder structures",
    "medium": "- Allow moderate depth with client/year grouping",
    "premium": "- Use detailed, domain-aware folder structures",
}


# ============================================================================
# Builders
# ============================================================================


@dataclass
class NamingInstructions:
    """Caller naming preferences added to the naming prompt."""

    naming_style: Optional[str] = None
    separator: Optional[str] = None
    date_format: Optional[str] = None
    date_position: Optional[str] = None
    custom_prefix: Optional[str] = None
    custom_suffix: Optional[str] = None
    max_length: Optional[int] = None
    output_language: Optional[str] = None
    custom_prompt: Optional[str] = None

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "NamingInstructions":
        """Build from a mapping, accepting snake_case or camelCase keys."""
        aliases = {
            "namingStyle": "naming_style",
            "dateFormat": "date_format",
            "datePosition": "date_position",
            "customPrefix": "custom_prefix",
            "customSuffix": "custom_suffix",
            "maxLength": "max_length",
            "outputLanguage": "output_language",
            "customPrompt": "custom_prompt",
        }
        kwargs = {}
        for key, value in values.items():
            name = aliases.get(key, key)
            if name in cls.__dataclass_fields__:
                kwargs[name] = value
            else:
                logger.debug(f"Ignoring unknown naming instruction '{key}'")
        return cls(**kwargs)

    @property
    def effective_max_length(self) -> int:
        return self.max_length or 100

    def render(self) -> str:
        lines = [
            "Additional naming preferences:",
            f"- Style: {self.naming_style or 'auto'}",
            f"- Separator: {self.separator or 'underscore'}",
            f"- Date format: {self.date_format or 'YYYY-MM-DD'}",
            f"- Date position: {self.date_position or 'prefix'}",
            f"- Custom prefix: {self.custom_prefix or ''}",
            f"- Custom suffix: {self.custom_suffix or ''}",
            f"- Max length: {self.effective_max_length}",
            f"- Language: {self.output_language or 'en'}",
        ]
        if self.custom_prompt:
            lines.append(f"- Custom instructions: {self.custom_prompt}")
        return "\n".join(lines) + "\n"


def build_naming_prompt(
    content: str,
    file_name: str,
    file_type: str,
    instructions: Optional[NamingInstructions] = None,
) -> str:
    """Render the filename suggestion prompt; content is cut to 2000 characters."""
    return NAMING_TEMPLATE.render(
        {
            "file_name": file_name,
            "file_type": file_type,
            "instructions": instructions.render() if instructions else "",
            "content": (content or "")[:MAX_CONTENT_CHARS],
        }
    )


def build_folder_prompt(
    files: Sequence[FileDescriptor], plan_tier: str, user_rules: Optional[str] = None
) -> str:
    """Render the folder organization prompt with tier-specific guidance."""
    file_list = "\n".join(f"{i + 1}. {f.name} ({f.type})" for i, f in enumerate(files))
    return FOLDER_TEMPLATE.render(
        {
            "file_list": file_list,
            "user_rules": user_rules or "None specified",
            "plan_tier": plan_tier,
            "tier_guidance": _TIER_GUIDANCE.get(plan_tier, ""),
        }
    )


def build_duplicate_prompt(files: Sequence[FileDescriptor]) -> str:
    """Render the duplicate detection prompt with short content previews."""
    lines = []
    for f in files:
        line = f"File: {f.name}, Type: {f.type}"
        if f.size:
            line += f", Size: {f.size} bytes"
        if f.content:
            line += f", Content preview: {f.content[:MAX_PREVIEW_CHARS]}..."
        lines.append(line)
    return DUPLICATE_TEMPLATE.render({"file_list": "\n".join(lines)})


def build_image_analysis_prompt(hint: Optional[str] = None) -> str:
    return IMAGE_ANALYSIS_TEMPLATE.render({"hint": f" Context: {hint}" if hint else ""})


def get_ocr_prompt(method: Optional[str], forms_and_tables: bool = False) -> str:
    """Return the OCR prompt for a method; unknown methods use smart-naming."""
    prompt = OCR_METHOD_PROMPTS.get(method or "", OCR_METHOD_PROMPTS[DEFAULT_OCR_METHOD])
    if forms_and_tables:
        prompt += FORMS_AND_TABLES_SUFFIX
    return prompt
