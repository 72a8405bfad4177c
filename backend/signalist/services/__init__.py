"""External service clients: generative text, market news and mail delivery."""
