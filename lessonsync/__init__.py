"""
LessonSync - Learner progress and session synchronization for lesson playback.
"""

__version__ = "0.1.0"
