"""
Answer codec for Course Engine.
Derives typed answer keys from a question's correct-answer field and
checks submissions against them. Stateless and pure.
"""

import logging
import re

from course_engine.domain.errors import InvalidSubmission, MalformedAnswerKey
from course_engine.domain.models import (
    SKIPPED_ANSWER_TEXT,
    AnswerKey,
    EvaluationResult,
    IndexKey,
    MatchingKey,
    Question,
    QuestionType,
    SequenceKey,
    SubmittedAnswer,
)

logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"\d+", re.ASCII)


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class AnswerCodec:
    """Stateless codec for answer keys and submission checks."""

    def derive_answer_key(self, question: Question) -> AnswerKey:
        """
        Parse ``question.raw_correct_answer`` for the question's type.

        Raises:
            MalformedAnswerKey: if the raw answer cannot be read for the type
        """
        match question.type:
            case QuestionType.MULTIPLE_CHOICE | QuestionType.TRUE_FALSE:
                return IndexKey(index=self._parse_index(question, question.raw_correct_answer))
            case QuestionType.SEQUENCING:
                raw = question.raw_correct_answer.strip()
                if not raw:
                    return SequenceKey(order=())
                order = tuple(self._parse_index(question, part) for part in raw.split(","))
                return SequenceKey(order=order)
            case QuestionType.MATCHING:
                return MatchingKey(
                    pairs=frozenset((pair.left, pair.right) for pair in question.matching_pairs)
                )

    def _parse_index(self, question: Question, raw: str) -> int:
        text = raw.strip()
        if not _INDEX_RE.fullmatch(text):
            raise MalformedAnswerKey(question.id, question.raw_correct_answer, "expected a non-negative integer index")
        return int(text)

    def is_presentable(self, question: Question) -> bool:
        """True when the question has options to show and a readable answer key."""
        if not question.has_presentable_options:
            logger.warning(f"Question {question.id} ({question.type.value}) has no presentable options")
            return False
        try:
            self.derive_answer_key(question)
        except MalformedAnswerKey as e:
            logger.warning(str(e))
            return False
        return True

    def evaluate(self, question: Question, submitted: SubmittedAnswer) -> EvaluationResult:
        """
        Check a submission against the question's answer key.

        Raises:
            InvalidSubmission: if the submission targets another question or its
                payload does not fit the question type
            MalformedAnswerKey: if the question's answer key cannot be read
        """
        if submitted.question_id != question.id:
            raise InvalidSubmission(
                f"Submission for question {submitted.question_id} evaluated against {question.id}"
            )
        if submitted.type is not question.type:
            raise InvalidSubmission(
                f"Submission type {submitted.type.value} does not match question type {question.type.value}"
            )

        if submitted.is_skip:
            return EvaluationResult(is_correct=False, normalized_answer_text=SKIPPED_ANSWER_TEXT)

        key = self.derive_answer_key(question)

        match question.type:
            case QuestionType.MULTIPLE_CHOICE | QuestionType.TRUE_FALSE:
                result = self._evaluate_index(question, key, submitted.payload)
            case QuestionType.SEQUENCING:
                result = self._evaluate_sequence(question, key, submitted.payload)
            case QuestionType.MATCHING:
                result = self._evaluate_matching(question, key, submitted.payload)

        logger.debug(
            f"Evaluated question {question.id}: correct={result.is_correct}, "
            f"answer={result.normalized_answer_text}"
        )
        return result

    def _evaluate_index(self, question: Question, key: IndexKey, payload: object) -> EvaluationResult:
        if not _is_index(payload):
            raise InvalidSubmission(f"Question {question.id} expects a single option index")

        is_correct = question.has_presentable_options and payload == key.index
        return EvaluationResult(is_correct=is_correct, normalized_answer_text=str(payload))

    def _evaluate_sequence(self, question: Question, key: SequenceKey, payload: object) -> EvaluationResult:
        if not isinstance(payload, list) or not all(_is_index(i) for i in payload):
            raise InvalidSubmission(f"Question {question.id} expects an ordered list of indices")

        is_correct = question.has_presentable_options and tuple(payload) == key.order
        text = ",".join(str(i) for i in payload)
        return EvaluationResult(is_correct=is_correct, normalized_answer_text=text)

    def _evaluate_matching(self, question: Question, key: MatchingKey, payload: object) -> EvaluationResult:
        if not isinstance(payload, dict):
            raise InvalidSubmission(f"Question {question.id} expects a left-id to right-id mapping")

        left_items, right_items = question.matching_item_ids()

        correct_matches = 0
        for left_id, right_id in payload.items():
            left = left_items.get(left_id)
            right = right_items.get(right_id)
            if left is not None and right is not None and (left, right) in key.pairs:
                correct_matches += 1

        total_pairs = key.total_pairs
        all_left_matched = all(left_id in payload for left_id in left_items)
        is_correct = (
            total_pairs > 0
            and all_left_matched
            and correct_matches == total_pairs
            and len(payload) == total_pairs
        )
        return EvaluationResult(
            is_correct=is_correct, normalized_answer_text=f"{correct_matches}/{total_pairs}"
        )
