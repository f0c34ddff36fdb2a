"""Data models for receiver status and sample sinks."""

from .receiver import ReceiverStatus
from .sample_sink import FileSampleSink, MemorySampleSink, SampleSink
