from docstudy.generation.factory import GenerativeTextFactory
from docstudy.generation.generative_text import GenerativeText, parse_json_object

__all__ = ["GenerativeText", "GenerativeTextFactory", "parse_json_object"]
