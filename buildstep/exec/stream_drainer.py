"""
Stream drainer for one output pipe of a running process.

A drainer reads its pipe until end-of-stream on a dedicated thread. In live
mode each chunk is decoded and handed to a sink as soon as it arrives; in
capture mode the raw bytes are accumulated and decoded once at the end.
"""

import codecs
import logging
import threading
from typing import BinaryIO, Callable, List, Optional


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
ENCODING = 'utf-8'


class StreamDrainer:
    """
    Drains a single byte stream to completion.

    Attributes:
        name: Label used for the thread name and logging (e.g. 'stdout')
        has_output: True once at least one byte has been read
    """

    def __init__(self, stream: BinaryIO, sink: Optional[Callable[[str], None]] = None, name: str = "stream"):
        """
        Initialize drainer.

        Args:
            stream: Readable binary pipe (e.g. Popen.stdout)
            sink: If given, decoded chunks are forwarded here live; otherwise
                the output is buffered and available from get_text()
            name: Label for the drain thread
        """
        self.stream = stream
        self.sink = sink
        self.name = name
        self.has_output = False
        self._chunks: List[bytes] = []
        self._decoder = codecs.getincrementaldecoder(ENCODING)(errors='replace')
        self._thread: Optional[threading.Thread] = None

    @property
    def is_live(self) -> bool:
        return self.sink is not None

    def start(self) -> None:
        """Start draining on a background thread."""
        self._thread = threading.Thread(
            target=self.run,
            name=f"StreamDrainer ({self.name})",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        """Read until end-of-stream, then close the stream. Runs on the drain thread."""
        read = getattr(self.stream, 'read1', None) or self.stream.read
        try:
            while True:
                chunk = read(CHUNK_SIZE)
                if not chunk:
                    break
                self.has_output = True
                if self.sink is not None:
                    text = self._decoder.decode(chunk)
                    if text:
                        self.sink(text)
                else:
                    self._chunks.append(chunk)
        except (OSError, ValueError) as e:
            # Pipe closed underneath us, typically because the process was destroyed
            logger.debug(f"Stopped draining {self.name}: {e}")
        finally:
            try:
                if self.sink is not None:
                    tail = self._decoder.decode(b'', final=True)
                    if tail:
                        self.sink(tail)
            finally:
                # The drainer owns its stream once started
                self.stream.close()

    def get_text(self) -> Optional[str]:
        """
        Return the buffered output.

        Returns:
            Decoded text in capture mode, None in live mode
        """
        if self.is_live:
            return None
        return b''.join(self._chunks).decode(ENCODING, errors='replace')
