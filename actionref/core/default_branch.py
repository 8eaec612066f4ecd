from actionref.core import log
from actionref.core.environment import ActionsEnvironment
from actionref.core.ref_resolver import RefResolver
from actionref.core.refs import remove_refs_heads_prefix


async def is_analyzing_default_branch(resolver: RefResolver, environment: ActionsEnvironment) -> bool:
    """
    Returns whether the run analyzes the repository's default branch.

    CODE_SCANNING_IS_ANALYZING_DEFAULT_BRANCH can be set where repository
    information is unavailable, for example in dynamic workflows.
    """
    if environment.is_default_branch_override():
        return True

    current_ref = remove_refs_heads_prefix(await resolver.get_ref())

    # Scheduled runs always execute on the default branch
    if environment.workflow_event_name() == "schedule":
        default_branch = remove_refs_heads_prefix(resolver.get_ref_from_env())
    else:
        event = environment.workflow_event()
        repository = event.get("repository") if isinstance(event, dict) else None
        default_branch = repository.get("default_branch") if isinstance(repository, dict) else None

    is_default = current_ref == default_branch
    log.debug(f"Current ref: {current_ref}, Default: {default_branch}, Is default: {is_default}")
    return is_default
