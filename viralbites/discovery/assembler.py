from viralbites.discovery.models import Source, VenuePlace


def assemble_results(places: list[VenuePlace], sources: list[Source]) -> list[VenuePlace]:
    """
    Attach discovery citations to every place and put verified places first.

    The ordering is a stable partition: within the verified and unverified
    groups, places keep the order they arrived in.
    """
    with_sources = [place.model_copy(update={"sources": list(sources)}) for place in places]
    return sorted(with_sources, key=lambda place: not place.verified)
