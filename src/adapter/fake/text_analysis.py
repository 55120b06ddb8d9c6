"""In-memory implementation of TextAnalysisPort for testing."""

from port.text_analysis import TextAnalysis, TextAnalysisError


class FakeTextAnalyzer:
    """Fake analyzer that returns a preconfigured analysis or raises."""

    def __init__(self, analysis: TextAnalysis | None = None, error: TextAnalysisError | None = None):
        self.analysis = analysis or TextAnalysis(explanation='', translation='')
        self.error = error
        self.calls: list[dict] = []

    async def analyze(self, text: str, credential: str) -> TextAnalysis:
        self.calls.append({"text": text, "credential": credential})
        if self.error:
            raise self.error
        return self.analysis
