"""Tag template resolution.

Tag templates are plain strings with placeholders that are replaced
literally with release metadata. This is not a template engine: unknown
placeholders stay in the tag as written, and templates that use a
conditional construct are dropped.
"""

from collections.abc import Iterable

from acr_publish.config.models import ReleaseContext

# Templates containing this marker are skipped entirely
CONDITIONAL_MARKER = "{{if"

# Placeholder spellings per release field; the dotted forms are the ones
# used by Go-template based release hosts
PLACEHOLDERS = {
    "version": ("{{version}}", "{{.Version}}"),
    "previous_version": ("{{previous_version}}", "{{.PreviousVersion}}"),
    "tag_name": ("{{tag_name}}", "{{.TagName}}"),
    "release_type": ("{{release_type}}", "{{.ReleaseType}}"),
}
BRANCH_PLACEHOLDERS = ("{{branch}}", "{{.Branch}}")


def sanitize_branch(branch: str) -> str:
    """Make a branch name usable inside an image tag.

    Registries reject '/' in tags, so 'feature/login' becomes 'feature-login'.
    """
    return branch.replace("/", "-")


def resolve_tag_template(template: str, release: ReleaseContext) -> str:
    """Resolve a single tag template.

    Args:
        template: Tag template (e.g. '{{version}}', 'v{{version}}-{{branch}}')
        release: Release metadata

    Returns:
        The resolved tag, or '' if the template must be dropped
    """
    if CONDITIONAL_MARKER in template:
        return ""

    result = template
    for field_name, spellings in PLACEHOLDERS.items():
        value = getattr(release, field_name)
        for placeholder in spellings:
            result = result.replace(placeholder, value)

    # Without a branch the placeholder is left as written
    if release.branch:
        safe_branch = sanitize_branch(release.branch)
        for placeholder in BRANCH_PLACEHOLDERS:
            result = result.replace(placeholder, safe_branch)

    return result


def resolve_tags(templates: Iterable[str], release: ReleaseContext) -> list[str]:
    """Resolve tag templates in order, dropping empty results.

    No reordering and no deduplication: the output is the input order
    minus dropped templates.

    Args:
        templates: Tag templates from the configuration
        release: Release metadata

    Returns:
        Resolved tags
    """
    tags = []
    for template in templates:
        tag = resolve_tag_template(template, release)
        if tag:
            tags.append(tag)
    return tags
