"""Host-side facade owning the process's single service slot."""

from cellstatus.app.host import ServiceHost

__all__ = ["ServiceHost"]
