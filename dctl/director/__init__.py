"""Director API: capability protocols, HTTP client and test doubles."""

from .api import Deployment, Director, InstanceSlug
from .client import DeploymentClient, DirectorClient
from .fakes import FakeDeployment, FakeDirector
from .transport import HttpError, HttpResponse, HttpTransport, MockHttpTransport, RealHttpTransport

__all__ = [
    "Deployment",
    "DeploymentClient",
    "Director",
    "DirectorClient",
    "FakeDeployment",
    "FakeDirector",
    "HttpError",
    "HttpResponse",
    "HttpTransport",
    "InstanceSlug",
    "MockHttpTransport",
    "RealHttpTransport",
]
