"""
Name of the image test containers run from.

The image is described by the ``docker_repo_name``, ``docker_repo_tag``,
``docker_registry_host`` and ``docker_registry_user`` options.
"""

from cgrouptest.config import none_if_empty
from cgrouptest.xceptions import DockerValueError

#: Config. options naming the image, in the order they appear in the name
IMAGE_OPTIONS = ('docker_registry_host', 'docker_registry_user',
                 'docker_repo_name', 'docker_repo_tag')


class DockerImage(object):  # pylint: disable=R0903

    """
    Namespace for image-name composition classmethods
    """

    @classmethod
    def full_name_from_component(cls, repo, tag=None,
                                 repo_addr=None, user=None):
        """
        Return ``[repo_addr/][user/]repo[:tag]``, skipping None parts
        """
        name = repo
        for prefix in (user, repo_addr):
            if prefix is not None:
                name = "%s/%s" % (prefix, name)
        if tag is not None:
            name = "%s:%s" % (name, tag)
        return name

    @classmethod
    def full_name_from_defaults(cls, config, min_length=4):
        """
        Return the fully qualified image name configured in ``config``

        :param config: Dict-like holding the ``IMAGE_OPTIONS`` keys, missing
                       or blank ones are left out of the name
        :param min_length: Shortest acceptable name
        :raises DockerValueError: if the name is shorter than min_length
        """
        options = dict((key, config.get(key, '')) for key in IMAGE_OPTIONS)
        none_if_empty(options)
        host, user, repo, tag = [options[key] for key in IMAGE_OPTIONS]
        fqin = cls.full_name_from_component(repo or '', tag, host, user)
        if len(fqin) < min_length:
            raise DockerValueError("Image name '%s' too short, check %s in"
                                   " defaults.ini" % (fqin,
                                                      ", ".join(IMAGE_OPTIONS)))
        return fqin
