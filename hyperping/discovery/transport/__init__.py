from .membership_notifier import MembershipNotifier as MembershipNotifier
from .membership_transport import (
    CallbackMembershipTransport as CallbackMembershipTransport,
    MembershipTransport as MembershipTransport,
)
