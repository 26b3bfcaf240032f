class VerificationError(Exception):
    """Base class for every failure of the donation verification workflow."""
    status_code = 400
    code = 'VERIFICATION_ERROR'
    default_message = 'Gagal memverifikasi donasi'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidVerificationRequest(VerificationError):
    code = 'VALIDATION_ERROR'
    default_message = 'Permintaan verifikasi tidak valid'


class DonationNotFound(VerificationError):
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Donasi tidak ditemukan'


class AlreadyProcessed(VerificationError):
    code = 'ALREADY_PROCESSED'
    default_message = 'Donasi sudah diverifikasi sebelumnya'


class PersistenceFailure(VerificationError):
    # Shown as-is to the operator; the cause stays in the server log.
    status_code = 500
    code = 'PERSISTENCE_FAILURE'
    default_message = 'Gagal memverifikasi donasi'
