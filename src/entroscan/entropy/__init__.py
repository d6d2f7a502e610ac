"""Entropy estimation: byte histograms, file readers and classification."""

from entroscan.entropy.classifier import FileClassifier, SkipReason
from entroscan.entropy.histogram import ByteHistogram, shannon_entropy, string_entropy
from entroscan.entropy.reader import chunked_entropy, sampled_entropy, whole_file_entropy

__all__ = [
    "ByteHistogram",
    "FileClassifier",
    "SkipReason",
    "chunked_entropy",
    "sampled_entropy",
    "shannon_entropy",
    "string_entropy",
    "whole_file_entropy",
]
