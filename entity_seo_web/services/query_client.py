from __future__ import annotations


class PersonaQueryClient:
    """
    Port: send one prompt to the model provider and return its text payload.
    Implementations raise UpstreamError on transport or provider failure.
    """
    def query(self, prompt: str) -> str:
        raise NotImplementedError
