# Exception types shared across the generation core.


class CorpusParseError(ValueError):
    """The knowledge base document is not valid structured data."""


class GenerationFailure(RuntimeError):
    """
    Internal fault while generating a reply, e.g. a context reached during a
    Markov walk that has no next-token entry.
    """
