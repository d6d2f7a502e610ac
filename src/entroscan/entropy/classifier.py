"""File classification: which reader to use and whether the result is a match."""

import random
from enum import Enum

from entroscan.entropy.reader import chunked_entropy, sampled_entropy
from entroscan.models.config import ScanConfig
from entroscan.models.scan import EntropyMethod, EntropyResult, FileEntry


class SkipReason(str, Enum):
    """Why a file was not scored."""

    EXCLUDED_EXTENSION = "excluded_extension"
    TOO_LARGE = "too_large"
    EMPTY = "empty"


class FileClassifier:
    """Routes files to the chunked or sampled reader and applies the limit.

    Files strictly below the size threshold get exact entropy; files at
    or above it are sampled. A file is a match only when its entropy is
    strictly greater than the entropy limit.
    """

    def __init__(self, config: ScanConfig, rng: random.Random | None = None) -> None:
        """Initialize the classifier.

        Args:
            config: Validated scan configuration
            rng: Random source for sampled mode (None draws fresh offsets)
        """
        self.config = config
        self.threshold = config.effective_threshold
        self.entropy_limit = config.entropy_limit
        self._rng = rng or random.Random()
        self._excluded_extensions = frozenset(config.excluded_extensions)

    def select_method(self, size_bytes: int) -> EntropyMethod:
        """Pick the reader for a file of the given size."""
        if size_bytes < self.threshold:
            return EntropyMethod.TRUE
        return EntropyMethod.ESTIMATED

    def skip_reason(self, entry: FileEntry) -> SkipReason | None:
        """Return why a file should not be opened at all, or None."""
        if entry.extension and entry.extension.lower() in self._excluded_extensions:
            return SkipReason.EXCLUDED_EXTENSION
        max_size = self.config.max_file_size_bytes
        if max_size is not None and entry.size_bytes > max_size:
            return SkipReason.TOO_LARGE
        if self.config.skip_empty_files and entry.size_bytes == 0:
            return SkipReason.EMPTY
        return None

    def measure(self, path: str, size_bytes: int) -> EntropyResult:
        """Compute entropy with the reader appropriate for the size."""
        if self.select_method(size_bytes) is EntropyMethod.TRUE:
            return chunked_entropy(path, self.config.chunk_size_bytes)
        return sampled_entropy(
            path,
            self.config.sample_size_bytes,
            rng=self._rng,
            file_size=size_bytes,
        )

    def is_match(self, result: EntropyResult) -> bool:
        """True when entropy is strictly above the limit."""
        return result.value > self.entropy_limit

    def classify(self, entry: FileEntry) -> tuple[EntropyResult, bool]:
        """Measure a file and decide whether it matches.

        Returns:
            Tuple of (entropy result, is_match)
        """
        result = self.measure(entry.path, entry.size_bytes)
        return result, self.is_match(result)
