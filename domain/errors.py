# /cry_match/domain/errors.py


class AudioError(Exception):
    """Baza pentru toate erorile motorului de captare și comparare."""


class DecodeError(AudioError):
    """Clipul de referință sau înregistrarea nu au putut fi decodate."""


class CaptureError(AudioError):
    """Microfonul nu este disponibil sau accesul a fost refuzat."""


class AnalysisError(AudioError):
    """Bufferul nu poate fi analizat; comparația nu produce scor."""


class EmptyInputError(AnalysisError):
    pass


class TransformFailureError(AnalysisError):
    pass


class ResourceReleaseError(AudioError):
    """Eliberarea unei resurse a eșuat. Se raportează, nu se propagă."""

    def __init__(self, handle, cause):
        super().__init__(f"Eliberarea resursei {handle} a eșuat: {cause}")
        self.handle = handle
        self.cause = cause


class CatalogError(Exception):
    """Interogarea catalogului a eșuat (rețea sau eroare GraphQL)."""
