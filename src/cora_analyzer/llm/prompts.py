"""
Prompts Module - Prompt templates for filtering, summaries and ratings.
=======================================================================

Three prompt pairs, all anchored on the exact course and professor so the
model ignores feedback about other classes:
- Relevance filter: copy relevant text verbatim or emit a sentinel
- Page summary: a short SUMMARY plus one verbatim QUOTE
- Final rating: fixed labelled template, optionally with a scoring rubric
"""

from dataclasses import dataclass

from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import CourseIdentity, PageSummary

logger = get_logger(__name__)

NO_RELEVANT_INFORMATION = "NO RELEVANT INFORMATION"
NO_RELEVANT_QUOTE = "NO RELEVANT QUOTE"
SUMMARY_WORDS = 80


# ─────────────────────────────────────────────────────────────────────────────
# System Prompts
# ─────────────────────────────────────────────────────────────────────────────


SYSTEM_PROMPT_FILTER = f"""You extract text. Your only job is to copy relevant passages from the input word for word.

Never summarize, paraphrase or comment. If nothing relevant exists, output exactly: "{NO_RELEVANT_INFORMATION}\""""


SYSTEM_PROMPT_SUMMARY = """You summarize student feedback about one course.

Write plain, conversational sentences with no buzzwords. Use <strong> only for a few key adjectives. Count your words. Stay on the exact course and professor you are given."""


SYSTEM_PROMPT_FINAL = f"""You write the final evaluation of a course from aggregated student feedback.

Be concise, direct and conversational. Each summary must be {SUMMARY_WORDS} words. Use <strong> only for two or three descriptive adjectives and never for names or course codes. Quote sources as <a href="URL">quoted text</a>. Stay on the exact course and professor given at the top."""


# ─────────────────────────────────────────────────────────────────────────────
# User Prompt Templates
# ─────────────────────────────────────────────────────────────────────────────


USER_PROMPT_FILTER_TEMPLATE = """Only the course and professor below matter. Ignore every other course and professor.

TARGET COURSE: {course_number} {course_name}
TARGET PROFESSOR: {professor}

=== SOURCE CONTENT ===
{content}
=== END SOURCE ===

Instructions:
1. Copy only sentences or paragraphs that mention {course_ref} or {professor}
2. Drop anything about other courses or other professors
3. Keep the text verbatim
4. If nothing is about this course or professor, output exactly: "{sentinel}"
5. Do not add words of your own"""


USER_PROMPT_SUMMARY_TEMPLATE = """This feedback is about the course and professor below. Do not mix in other courses or professors.

TARGET COURSE: {course_number}
TARGET PROFESSOR: {professor}

=== FEEDBACK ===
{content}
=== END FEEDBACK ===

Output exactly this format:
SUMMARY: [{words} words in one paragraph about {course_ref} with {professor}: overall sentiment, teaching style, workload, grading, strengths and concerns.]
QUOTE: "[One exact quote from the source that names {course_ref} or {professor_ref}. If there is none, output: {no_quote}]"

Requirements:
- SUMMARY is exactly {words} words
- Cover only {course_ref} with {professor}
- QUOTE is verbatim and names the course code or professor"""


USER_PROMPT_FINAL_TEMPLATE = """TARGET COURSE: {course_number}
TARGET PROFESSOR: {professor}

The summaries below may mention other courses or professors. Use only feedback about the target course and professor.

=== AGGREGATED FEEDBACK ===
{summaries}
=== END FEEDBACK ===

Output exactly this format:

OVERALL RATING: [one number from 1 to 5 with a decimal for {course_ref} with {professor}, e.g. 4.2]

DIFFICULTY RATING: [one number from 1 to 5 with a decimal for {course_ref}, where 1 is very easy and 5 is very difficult]

COURSE CONTENT SUMMARY:
[{words} words in one paragraph about what {course_ref} teaches, how it is structured and what learning in it is like. Refer to it by its short code. Include a quote as <a href="URL">quoted text</a> only if it names {course_ref}.]

PROFESSOR SUMMARY:
[{words} words in one paragraph about {professor_ref}: teaching style, grading fairness, interaction with students. Refer to them by name without bold. Include a quote as <a href="URL">quoted text</a> only if it names {professor_ref}.]

Requirements:
- Each summary is exactly {words} words
- Bold only descriptive adjectives, two or three per summary
- Quotes are optional; leave them out when none names the course or professor{rubric}"""


RUBRIC_GUIDANCE = """

SCORING RUBRIC:

OVERALL RATING (1-5):
- 5.0: Exceptional - overwhelmingly positive, strongly recommended
- 4.0-4.9: Very Good - mostly positive with minor concerns
- 3.0-3.9: Good - mixed reviews, depends on the student
- 2.0-2.9: Fair - more concerns than positives
- 1.0-1.9: Poor - predominantly negative, not recommended

DIFFICULTY RATING (1-5):
- 5.0: Very Difficult - very heavy workload, high risk of failing
- 4.0-4.9: Difficult - significant time investment, hard concepts
- 3.0-3.9: Moderate - manageable with steady effort
- 2.0-2.9: Easy - light workload, straightforward material
- 1.0-1.9: Very Easy - minimal effort required

Weigh the number of sources, how consistent the sentiment is, specific complaints and praise, workload, grading fairness and teaching quality."""


# ─────────────────────────────────────────────────────────────────────────────
# Prompt Builder
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class _IdentityFields:
    course_number: str
    course_name: str
    professor: str
    course_ref: str
    professor_ref: str


def _identity_fields(identity: CourseIdentity) -> _IdentityFields:
    professor = identity.professor_name.strip() if identity.has_professor else ""
    return _IdentityFields(
        course_number=identity.course_number,
        course_name=identity.course_name,
        professor=professor or "N/A",
        course_ref=identity.course_number or "the course",
        professor_ref=professor or "the professor",
    )


def format_summaries(summaries: list[PageSummary]) -> str:
    """Number the summaries and separate them with rules."""
    return "\n\n---\n\n".join(
        f"Source {i} ({s.source}):\n{s.summary_text or ''}" for i, s in enumerate(summaries, 1)
    )


class PromptBuilder:
    """
    Builds (system_prompt, user_prompt) pairs for each model operation.

    Example:
        >>> builder = PromptBuilder()
        >>> system, user = builder.build_filter_prompt(page_text, identity)
    """

    def build_filter_prompt(self, content: str, identity: CourseIdentity) -> tuple[str, str]:
        fields = _identity_fields(identity)
        user_prompt = USER_PROMPT_FILTER_TEMPLATE.format(
            course_number=fields.course_number,
            course_name=fields.course_name,
            professor=fields.professor,
            course_ref=fields.course_ref,
            content=content,
            sentinel=NO_RELEVANT_INFORMATION,
        )
        return SYSTEM_PROMPT_FILTER, user_prompt

    def build_summary_prompt(self, content: str, identity: CourseIdentity) -> tuple[str, str]:
        fields = _identity_fields(identity)
        user_prompt = USER_PROMPT_SUMMARY_TEMPLATE.format(
            course_number=fields.course_number,
            professor=fields.professor,
            course_ref=fields.course_ref,
            professor_ref=fields.professor_ref,
            content=content,
            words=SUMMARY_WORDS,
            no_quote=NO_RELEVANT_QUOTE,
        )
        return SYSTEM_PROMPT_SUMMARY, user_prompt

    def build_final_prompt(
        self,
        summaries: list[PageSummary],
        identity: CourseIdentity,
        use_rubric: bool = False,
    ) -> tuple[str, str]:
        """
        Build the final rating prompt.

        Args:
            summaries: Successful page summaries (may be empty)
            identity: Course being rated
            use_rubric: Append the five-band scoring rubric

        Returns:
            Tuple of (system_prompt, user_prompt)
        """
        fields = _identity_fields(identity)
        user_prompt = USER_PROMPT_FINAL_TEMPLATE.format(
            course_number=fields.course_number,
            professor=fields.professor,
            course_ref=fields.course_ref,
            professor_ref=fields.professor_ref,
            summaries=format_summaries(summaries) or "(no summaries available)",
            words=SUMMARY_WORDS,
            rubric=RUBRIC_GUIDANCE if use_rubric else "",
        )
        logger.debug(
            f"Built final prompt: {len(summaries)} summaries, rubric={use_rubric}, "
            f"{len(user_prompt)} chars"
        )
        return SYSTEM_PROMPT_FINAL, user_prompt
