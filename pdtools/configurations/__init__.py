from .pipedream import PipedreamConfiguration

__all__ = ['PipedreamConfiguration']
