from services.analysis_interpreter import AnalysisInterpreter
from services.syllabus_service import SyllabusService
from services.stream_consumer import StreamConsumer, SessionReconstructor, ConsumeResult

__all__ = [
    'AnalysisInterpreter',
    'SyllabusService',
    'StreamConsumer',
    'SessionReconstructor',
    'ConsumeResult'
]
