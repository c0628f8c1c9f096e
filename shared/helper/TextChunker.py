import uuid

from shared.models.document import ChunkMetadata, DocumentChunk


class TextChunker:
    """Splits text into overlapping windows, preferring sentence and word boundaries.

    Args:
        chunk_size (int): Maximum characters per chunk.
        chunk_overlap (int): Characters shared by consecutive chunks.

    Raises:
        ValueError: Unless 0 <= chunk_overlap < chunk_size.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap} with chunk_size {chunk_size}")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def chunk_text(self, text: str) -> list[str]:
        """Split text into chunks.

        Text no longer than chunk_size (or empty) comes back as a single chunk.
        Otherwise each window is cut after its last "." or, lacking one, at its
        last space, unless the window already reaches the end of the text. A cut
        that would keep no more than chunk_overlap characters is ignored and the
        full window is used. The next window starts chunk_overlap characters
        before the cut. The window that reaches the end of the text is the last
        one.

        Args:
            text (str): The text to split.

        Returns:
            list[str]: Trimmed, non-empty chunks in order.
        """
        if not text or len(text) <= self.chunk_size:
            return [text]

        chunks: list[str] = []
        start = 0
        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            window = text[start:end]

            if end < len(text):
                last_period = window.rfind(".")
                last_space = window.rfind(" ")
                if last_period > -1:
                    cut = last_period + 1
                elif last_space > -1:
                    cut = last_space
                else:
                    cut = len(window)
                # a cut inside the overlap would let the next window start at or before this one
                if self.chunk_overlap < cut < len(window):
                    window = window[:cut]

            chunks.append(window.strip())
            if end >= len(text):
                break
            start += len(window) - self.chunk_overlap

        return [chunk for chunk in chunks if chunk]

    def create_document_chunks(self, text: str, base_metadata: dict) -> list[DocumentChunk]:
        """Chunk text and wrap every chunk with metadata and a fresh ID.

        Args:
            text (str): The document text.
            base_metadata (dict): ChunkMetadata fields except chunk_index and total_chunks.

        Returns:
            list[DocumentChunk]: Chunks with dense zero-based chunk_index.
        """
        pieces = self.chunk_text(text)
        return [
            DocumentChunk(
                id=str(uuid.uuid4()),
                content=piece,
                metadata=ChunkMetadata(**base_metadata, chunk_index=index, total_chunks=len(pieces)),
            )
            for index, piece in enumerate(pieces)
        ]
