from typing import List

from adaptive_learning.models.questions import Question, QuestionOption


def get_demo_questions() -> List[Question]:
    """Fixed question set used when question generation is unavailable."""
    return [
        Question(
            id="demo_1",
            number=1,
            type="multiple_choice",
            difficulty="easy",
            question="What is the primary purpose of machine learning?",
            context=(
                "Machine learning is a subset of artificial intelligence that "
                "enables computers to learn without being explicitly programmed."
            ),
            options=[
                QuestionOption(
                    id="a",
                    text="To automate repetitive tasks",
                    explanation=(
                        "While ML can automate tasks, this is not its primary purpose"
                    ),
                ),
                QuestionOption(
                    id="b",
                    text="To enable computers to learn from data",
                    explanation=(
                        "Correct - ML allows systems to improve performance "
                        "through experience"
                    ),
                ),
                QuestionOption(
                    id="c",
                    text="To replace human intelligence",
                    explanation="ML augments rather than replaces human intelligence",
                ),
                QuestionOption(
                    id="d",
                    text="To process large amounts of data",
                    explanation=(
                        "Data processing is a component, not the primary purpose"
                    ),
                ),
            ],
            correct_answer="b",
            concept_id="demo_concept_1",
        ),
        Question(
            id="demo_2",
            number=2,
            type="true_false",
            difficulty="medium",
            question="Supervised learning requires labeled training data.",
            context=(
                "Understanding the difference between supervised and "
                "unsupervised learning is crucial."
            ),
            correct_answer="true",
            explanation=(
                "Supervised learning uses labeled examples to train models to "
                "make predictions."
            ),
            concept_id="demo_concept_2",
        ),
    ]
