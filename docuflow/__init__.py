"""
DocuFlow - Page-by-page document transcription and answer-script grading.

Example:
    >>> from docuflow.domains.transcription import TranscriptionPipeline
    >>> pipeline = TranscriptionPipeline(source, extractor)
    >>> state = await pipeline.start(document)
    >>> print(pipeline.combined_transcript)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
