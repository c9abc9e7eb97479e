"""Live-class mode: gesture responder, voices, speech output, teacher transcript."""
