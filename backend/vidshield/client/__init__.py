"""Client components for the video asset lifecycle."""
from vidshield.client.credentials import CredentialStore
from vidshield.client.http import ApiClient
from vidshield.client.reconciler import AssetView, LifecycleReconciler
from vidshield.client.registry import AssetRegistryClient, IdentityClient
from vidshield.client.roster import RemovalRequest, RosterController
from vidshield.client.stream import StreamAuthorizer
from vidshield.client.upload import CandidateFile, UploadSessionController, UploadState

__all__ = [
    "ApiClient",
    "AssetRegistryClient",
    "AssetView",
    "CandidateFile",
    "CredentialStore",
    "IdentityClient",
    "LifecycleReconciler",
    "RemovalRequest",
    "RosterController",
    "StreamAuthorizer",
    "UploadSessionController",
    "UploadState",
]
