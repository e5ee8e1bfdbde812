"""Topic matching exceptions."""


class TopicMatchError(Exception):
    """A semantic judgment referenced ids or topics outside the request."""
