"""Pipe to process-substitution rewrite.

Some targets' SSH session layer does not reliably deliver output through
a live pipe. ``a | b | c`` is rewritten so that every downstream stage
reads its input from a process substitution instead::

    a | b        ->  b< <(a)
    a | b | c    ->  c< <((b)< <(a))
    a | b &      ->  b< <(a) &

The transform is lexical: a ``|`` inside quotes is treated as an operator
and ``||`` produces an empty stage.
"""

PIPE = "|"
BACKGROUND = "&"


def rewrite_pipes(command: str) -> str:
    """Rewrite a pipeline into nested process substitutions.

    Args:
        command: Shell command, possibly containing pipes

    Returns:
        Rewritten command, or the input unchanged when it has no pipe
    """
    if not command or PIPE not in command:
        return command

    body = command.rstrip()
    background = body.endswith(BACKGROUND)
    if background:
        body = body[: -len(BACKGROUND)].rstrip()

    stages = [stage.strip() for stage in body.split(PIPE)]
    count = len(stages)

    parts: list[str] = []
    visited = 0
    for index in range(count - 1, -1, -1):
        visited += 1
        parts.append(stages[index])
        if index != count - 1:
            parts.append(")")
        if index != 0:
            parts.append("< <(")
            if count - visited > 1:
                parts.append("(")

    parts.append(")" * max(0, count - 2))
    if background:
        parts.append(" " + BACKGROUND)
    return "".join(parts)
