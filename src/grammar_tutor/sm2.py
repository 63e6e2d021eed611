"""SM-2 spaced repetition scheduling for answered questions."""
from dataclasses import replace

from grammar_tutor.models import QuestionReviewState, now_iso

MIN_EASE_FACTOR = 1.3
INCORRECT_PENALTY = 0.2

# Every correct answer is graded at this recall quality, so the ease
# adjustment is the same constant regardless of response time.
FIXED_QUALITY = 3
CORRECT_EASE_DELTA = 0.1 - (5 - FIXED_QUALITY) * (0.08 + (5 - FIXED_QUALITY) * 0.02)


def sm2_update(
    correct: bool,
    repetitions: int,
    ease_factor: float,
    interval: int,
) -> dict:
    """Calculate next review parameters using SM-2.

    Args:
        correct: Whether the question was answered correctly
        repetitions: Number of consecutive correct reviews
        ease_factor: Current ease factor (minimum 1.3)
        interval: Current interval in days

    Returns:
        Dict with updated interval, repetitions, ease_factor.
    """
    if correct:
        if repetitions == 0:
            new_interval = 1
        elif repetitions == 1:
            new_interval = 6
        else:
            new_interval = round(interval * ease_factor)
        new_repetitions = repetitions + 1
        new_ef = ease_factor + CORRECT_EASE_DELTA
    else:
        # Incorrect: reset
        new_repetitions = 0
        new_interval = 1
        new_ef = ease_factor - INCORRECT_PENALTY

    new_ef = max(MIN_EASE_FACTOR, round(new_ef, 2))

    return {
        "interval": max(1, new_interval),
        "repetitions": new_repetitions,
        "ease_factor": new_ef,
    }


def schedule(
    state: QuestionReviewState,
    correct: bool,
    response_time: float = 0.0,
    attempts: int = 1,
    now: str | None = None,
) -> QuestionReviewState:
    """Return the review state that follows answering ``state``'s question.

    The input state is left untouched.
    """
    updated = sm2_update(
        correct=correct,
        repetitions=state.repetitions,
        ease_factor=state.ease_factor,
        interval=state.interval_days,
    )
    return replace(
        state,
        is_correct=correct,
        response_time=response_time,
        attempts=attempts,
        repetitions=updated["repetitions"],
        ease_factor=updated["ease_factor"],
        interval_days=updated["interval"],
        last_reviewed=now or now_iso(),
    )
