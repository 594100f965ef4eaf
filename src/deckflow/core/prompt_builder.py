"""System prompt templates for the two generation use cases.

Each builder is a pure function of a validated :class:`GenerationRequest`.
The system instruction is a fixed template with the resolved option values
interpolated; the user instruction is the requirements text exactly as the
caller sent it.

Outline Template
----------------
States the exact slide count, the four required per-slide fields, the tone
and audience, a logical-flow hint, and a directive to emit bare JSON.

Diagram Template
----------------
A fixed instruction covering diagram type selection, Mermaid syntax rules,
naming clarity, and a raw-output-only directive, followed by one worked
example.  It takes no options.

Usage
-----
::

    payload = build_outline_prompt(request)
    payload.system_instruction  # template with slide count, tone, audience
    payload.user_instruction    # request.requirements
"""

from __future__ import annotations

from deckflow.core.models import GenerationRequest, PromptPayload

# ---------------------------------------------------------------------------
# Fixed templates.
# ---------------------------------------------------------------------------

_OUTLINE_TEMPLATE = """\
You are an expert presentation designer. Your task is to create a PowerPoint outline in JSON format based on user requirements.

Instructions:
- Generate exactly {slide_count} slides.
- Each slide must include:
  - "title": A clear, engaging slide title.
  - "content": 3 to 6 concise bullet points (strings) tailored for the {audience} audience.
  - "layout": Suggest a layout (e.g., "title", "content", "comparison", "image").
  - "notes": A brief speaker note (1-2 sentences).
- Use a {tone} tone that is engaging and user-friendly.
- Ensure the presentation has a logical flow (e.g., intro, core content, conclusion).
- Adapt content to the audience: {audience}.
- Output strict JSON: a single array of exactly {slide_count} slide objects, with no markdown, code fences, or surrounding prose."""

_DIAGRAM_TEMPLATE = """\
You are an expert in generating Mermaid code for diagrams such as flowcharts, sequence diagrams, and class diagrams. Your task is to interpret the user's requirements and produce valid, well-structured Mermaid syntax that accurately represents the described process, system, or relationship. Follow these guidelines:

1. Diagram Type Selection: Choose the most appropriate Mermaid diagram type based on the requirements:
   - Use 'graph TD' (flowchart) for processes, workflows, or decision trees.
   - Use 'sequenceDiagram' for interactions between entities over time.
   - Use 'classDiagram' for object-oriented structures or relationships.
   - If the type is unclear, default to a flowchart ('graph TD') unless specified otherwise.

2. Syntax Rules:
   - Ensure proper Mermaid syntax (e.g., 'A --> B' for flowcharts, 'Actor1 -> Actor2: Message' for sequence diagrams).
   - Use meaningful node names and labels that reflect the requirement details.
   - For flowcharts, include decision points with '{Condition}' and branches like '--> |Yes|'.
   - For sequence diagrams, use '->' for messages and '-->' for replies if applicable.

3. Clarity and Structure:
   - Break complex requirements into logical steps or interactions.
   - Use indentation and line breaks for readability.
   - Avoid overly generic or vague node names (e.g., prefer 'ValidateCredentials' over 'Step1').

4. Output:
   - Return only the Mermaid code, without explanations, comments, code fences, or additional text.
   - Ensure the code is ready to render in a Mermaid-compatible viewer.

Example:
Requirement: "Create a flowchart for a user login process"
Output:
graph TD
  A[Start] --> B[Enter Username]
  B --> C[Enter Password]
  C --> D{Valid Credentials?}
  D --> |Yes| E[Login Success]
  D --> |No| F[Login Failed]
  E --> G[End]
  F --> G"""


def build_outline_prompt(request: GenerationRequest) -> PromptPayload:
    """Render the slide outline prompt.

    Args:
        request: Validated request with ``slide_count``, ``tone`` and
            ``audience`` options resolved.

    Returns:
        The prompt payload for one completion call.
    """
    system_instruction = _OUTLINE_TEMPLATE.format(
        slide_count=request.option("slide_count"),
        tone=request.option("tone"),
        audience=request.option("audience"),
    )
    return PromptPayload(
        system_instruction=system_instruction,
        user_instruction=request.requirements,
    )


def build_diagram_prompt(request: GenerationRequest) -> PromptPayload:
    """Render the Mermaid diagram prompt."""
    return PromptPayload(
        system_instruction=_DIAGRAM_TEMPLATE,
        user_instruction=request.requirements,
    )
