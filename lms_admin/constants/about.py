"""Static metadata describing the LMS admin console."""

APP_NAME = "LMS Admin Console"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "LMS Admin Console is the administrative backend of a learning management system. "
    "Use it to author exams, review results, manage the student roster and answer support tickets."
)

HELP_TEXT = (
    "Exams can be authored question by question or imported as JSON. "
    "Any reasonably shaped JSON works; the canonical layout is:\n\n"
    '{ "title": "Math Exam", "shuffleQuestions": true, "questions": [ '
    '{ "text": "2+2?", "type": "multiple-choice", "options": ["3", "4", "5"], "correctAnswer": 1 } ] }'
)
