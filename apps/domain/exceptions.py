class ReportAnalyzerError(Exception):
    """Base exception for report analysis errors"""
    pass


class ConfigError(ReportAnalyzerError):
    """Raised when a required credential or setting is missing"""
    pass


class ParseError(ReportAnalyzerError):
    """Raised when an uploaded file cannot be decoded"""
    pass


class UnsupportedFileError(ParseError):
    """Raised when an uploaded file has an unsupported type"""
    pass


class AnalysisError(ReportAnalyzerError):
    """Raised when the model returns no usable analysis"""
    pass


class PersistenceError(ReportAnalyzerError):
    """Raised when the backend rejects or fails a save"""
    pass


class AuthenticationError(ReportAnalyzerError):
    """Raised when the identity provider refuses a sign-in"""
    pass
