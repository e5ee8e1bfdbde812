"""Prompt templates for topic matching and conversation analysis."""

import json
from collections.abc import Mapping, Sequence


TOPIC_MATCH_SYSTEM_INSTRUCTION = (
    "You are a medical terminology assistant for a health consultation platform. "
    "You compare the health topics a user cares about with the topics attached to "
    "articles and decide which pairs are genuinely related.\n\n"
    "Use ONLY these relationship labels:\n"
    "- exact: the same topic\n"
    "- synonym: a different name for the same thing (e.g. heart / cardiovascular)\n"
    "- related_condition: a condition, symptom or treatment closely tied to it\n"
    "- broader_term: the article topic is more general than the user topic\n"
    "- narrower_term: the article topic is more specific than the user topic\n\n"
    "Never invent topics or content ids. Copy topic strings exactly as given.\n"
    "Respond ONLY with a JSON array, no markdown fences or extra text."
)

_TOPIC_MATCH_TEMPLATE = """## User Topics
{user_topics}

## Content Topics (by content id)
{content_topics}

## Output Format
Respond with a JSON array. Each element describes one related pair:
- "contentId": the content id exactly as given
- "userTopic": one of the user topics, copied exactly
- "contentTopic": one of that content's topics, copied exactly
- "relationship": one of exact, synonym, related_condition, broader_term, narrower_term
- "confidence": float from 0.0 to 1.0
- "explanation": optional short reason

Omit unrelated pairs. Return [] when nothing is related.

Example:
[{{"contentId": "c1", "userTopic": "heart", "contentTopic": "cardiovascular wellness", "relationship": "synonym", "confidence": 0.9, "explanation": "Cardiovascular refers to the heart."}}]
"""


def build_topic_match_prompt(
    user_topics: Sequence[str], content_topic_sets: Mapping[str, Sequence[str]]
) -> str:
    """Build the pairwise topic relationship prompt.

    Args:
        user_topics: The user's interest topics.
        content_topic_sets: Content ID to that content's topics.

    Returns:
        Formatted user prompt.
    """
    content_lines = [
        f"- {content_id}: {json.dumps(list(topics), ensure_ascii=False)}"
        for content_id, topics in content_topic_sets.items()
    ]
    return _TOPIC_MATCH_TEMPLATE.format(
        user_topics=json.dumps(list(user_topics), ensure_ascii=False),
        content_topics="\n".join(content_lines),
    )


CONVERSATION_SYSTEM_INSTRUCTION = (
    "You are a medical triage assistant. Read a patient conversation and extract "
    "the information needed to route the patient to the right specialist. "
    "Do not diagnose. Respond ONLY with a JSON object, no markdown fences or extra text."
)

_CONVERSATION_TEMPLATE = """## Conversation
{conversation}

## Output Format
Respond with one JSON object with these fields:
- "primarySpecialty": the specialist type needed (e.g. "Cardiology", "General Physician")
- "severity": one of routine, urgent, critical
- "keySymptoms": list of short symptom phrases
- "healthTopics": list of short health topic phrases
- "confidence": float from 0.0 to 1.0

Example:
{{"primarySpecialty": "Dermatology", "severity": "routine", "keySymptoms": ["rash"], "healthTopics": ["skin care"], "confidence": 0.8}}
"""


def build_conversation_prompt(conversation: str) -> str:
    """Build the conversation analysis prompt.

    Args:
        conversation: Free-text conversation transcript.

    Returns:
        Formatted user prompt.
    """
    return _CONVERSATION_TEMPLATE.format(conversation=conversation.strip())
