"""
Domain errors raised by the service layer
"""


class CourseHubError(Exception):
    """Base class for service errors that map to a client response"""
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class NotFoundError(CourseHubError):
    """Resource not found"""
    status_code = 404


class SubmissionClosedError(CourseHubError):
    """Submission window has closed"""
    status_code = 403


class DuplicateSubmissionError(CourseHubError):
    """Already submitted"""
    status_code = 409


class EmptyPaperError(CourseHubError):
    """No questions are linked to this assignment or exam"""


class GradeValidationError(CourseHubError):
    """Invalid grade input"""


class PaperValidationError(CourseHubError):
    """Invalid assignment or exam input"""


class SourceInUseError(CourseHubError):
    """Students have already submitted answers"""
    status_code = 409


class ImportRowError(CourseHubError):
    """Spreadsheet row could not be imported"""

    def __init__(self, row_number, reason):
        self.row_number = row_number
        self.reason = reason
        super().__init__(f'Row {row_number}: {reason}')
