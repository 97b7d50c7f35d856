from .code_context import CodeContextBuilder
from .flow_synthesizer import FlowSynthesizer

__all__ = ["CodeContextBuilder", "FlowSynthesizer"]
