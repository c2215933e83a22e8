"""
Seed the store with sample interview definitions.

Usage: python -m TIV.seed [--force]
"""
import sys
from typing import List

from packages.tiv_core.logging import get_logger, setup_logging
from packages.tiv_session.dto import Difficulty, InterviewDefinition, Tone
from packages.tiv_store.repository import InterviewStore
from TIV.api.dependencies import get_config, get_store

logger = get_logger("tiv.seed")

SAMPLE_INTERVIEWS: List[InterviewDefinition] = [
    InterviewDefinition(
        role="Backend Engineer",
        skills=["API Design", "Databases", "System Design", "Performance"],
        difficulty=Difficulty.MID,
        rubric={"API Design": 25, "Databases": 25, "System Design": 30, "Performance": 20},
        red_flag_catalog=[
            "No real-world examples",
            "Hand-wavy explanations",
            "Cannot explain trade-offs",
            "No understanding of scalability",
        ],
        tone=Tone.NEUTRAL,
    ),
    InterviewDefinition(
        role="Frontend Developer",
        skills=["React", "JavaScript", "CSS", "Performance", "Testing"],
        difficulty=Difficulty.MID,
        rubric={"React": 30, "JavaScript": 25, "CSS": 20, "Performance": 15, "Testing": 10},
        red_flag_catalog=[
            "No component design understanding",
            "Poor state management knowledge",
            "No testing experience",
            "Cannot explain browser concepts",
        ],
        tone=Tone.FRIENDLY,
    ),
    InterviewDefinition(
        role="Senior Full Stack Engineer",
        skills=["Architecture", "Leadership", "System Design", "Mentoring", "Technical Strategy"],
        difficulty=Difficulty.SENIOR,
        rubric={
            "Architecture": 30,
            "Leadership": 25,
            "System Design": 25,
            "Mentoring": 10,
            "Technical Strategy": 10,
        },
        red_flag_catalog=[
            "No leadership experience",
            "Cannot design systems at scale",
            "Poor communication skills",
            "No mentoring experience",
        ],
        tone=Tone.STRICT,
    ),
]


def seed(store: InterviewStore, force: bool = False) -> List[str]:
    """Create the sample interviews. Skips an already populated store unless force is set."""
    if store.list_interviews() and not force:
        logger.info("Store already has interviews, skipping seed")
        return []
    ids = [store.create_interview(definition) for definition in SAMPLE_INTERVIEWS]
    logger.info(f"Seeded {len(ids)} interviews")
    return ids


def main(argv: List[str]) -> int:
    config = get_config()
    setup_logging(log_dir=config.LOG_DIR, level=config.LOG_LEVEL, to_file=False)
    ids = seed(get_store(), force="--force" in argv)
    for interview_id in ids:
        print(f"Created interview {interview_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
