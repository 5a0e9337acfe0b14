from .catalog import AuthorInput, TitleInput

__all__ = ["AuthorInput", "TitleInput"]
