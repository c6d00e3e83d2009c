from api.models.donation import Donation, DuplicateTx
from api.models.user import User

__all__ = ['Donation', 'DuplicateTx', 'User']
