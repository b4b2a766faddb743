from __future__ import annotations

from linkgen.config import GeneratorConfig
from linkgen.naming.case import sanitize_identifier, split_words
from linkgen.routes.paths import param_name, split_segments, strip_name_prefix
from linkgen.routes.specs import HttpMethod

# GET /users/{user_id} -> users by user id
PARAM_WORD = "by"
ROOT_WORD = "root"


def route_tokens(method: HttpMethod, path: str, config: GeneratorConfig) -> list[str]:
    """
    Ordered words that name a route.

    The configured path_prefix_to_remove is dropped first. Each {param} segment
    contributes "by" followed by the words of its name, so routes that only
    differ by parameter name stay distinguishable.
    """
    name_path = strip_name_prefix(path, config.path_prefix_to_remove)

    words: list[str] = []
    for seg in split_segments(name_path):
        name = param_name(seg)
        if name is not None:
            words.append(PARAM_WORD)
            words.extend(split_words(name, config.word_separators, config.preserve_numbers))
        else:
            words.extend(split_words(seg, config.word_separators, config.preserve_numbers))

    if not words:
        words = [ROOT_WORD]
    if config.include_method_in_names:
        words.insert(0, method.value.lower())
    return words


def variant_name(tokens: list[str], config: GeneratorConfig) -> str:
    core = config.variant_case.convert(tokens)
    return sanitize_identifier(f"{config.variant_prefix}{core}{config.variant_suffix}")


def field_name(param: str, config: GeneratorConfig) -> str:
    words = split_words(param, config.word_separators, config.preserve_numbers) or [param]
    return sanitize_identifier(config.field_case.convert(words))
