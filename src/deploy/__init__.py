"""Install into the local repository and deploy to remote ones."""

from deploy.deployer import Deployer
from deploy.installer import Installer
from deploy.models import DeployArtifact

__all__ = ["DeployArtifact", "Deployer", "Installer"]
