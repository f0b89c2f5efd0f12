"""Default collaborators shipped with qxc."""
