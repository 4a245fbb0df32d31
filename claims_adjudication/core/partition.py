"""
Lane partitioning for batch adjudication.

Claims are routed to lanes by member so that all claims of one member are
adjudicated serially, in submission order, by the same lane.
"""


def get_partition_id(member_id: int, num_lanes: int) -> int:
    """
    Determine which lane owns a member.

    Args:
        member_id: Member identifier
        num_lanes: Total number of lanes

    Returns:
        Lane ID (0 to num_lanes-1)
    """
    return member_id % num_lanes


class PartitionManager:
    """
    Routes claims to lanes.

    The partitioning scheme is:
    - partition_id = member_id % num_lanes
    - A lane owns every claim of the members that map to it
    - Within a lane, claims keep their input order

    Usage:
        partition = PartitionManager(num_lanes=4)
        lanes = partition.assign([(0, claim_a), (1, claim_b)], member_of)
    """

    def __init__(self, num_lanes: int):
        """
        Initialize the partition manager.

        Args:
            num_lanes: Total number of lanes (at least 1)
        """
        if num_lanes < 1:
            raise ValueError("num_lanes must be at least 1")
        self.num_lanes = num_lanes

    def get_partition(self, member_id: int) -> int:
        """Lane that owns a member."""
        return get_partition_id(member_id, self.num_lanes)

    def owns(self, member_id: int, lane_id: int) -> bool:
        """Check whether a lane owns a member."""
        return self.get_partition(member_id) == lane_id

    def assign(self, items: list, member_of) -> dict[int, list]:
        """
        Group items into lanes, preserving order within each lane.

        Args:
            items: Items to route
            member_of: Callable returning the member id of an item

        Returns:
            Dictionary mapping lane ID to its items (empty lanes omitted)
        """
        lanes: dict[int, list] = {}
        for item in items:
            lanes.setdefault(self.get_partition(member_of(item)), []).append(item)
        return lanes

    def partition_count(self, member_ids: list[int]) -> dict[int, int]:
        """
        Count members by lane.

        Useful for debugging lane distribution.
        """
        counts: dict[int, int] = {i: 0 for i in range(self.num_lanes)}
        for member_id in member_ids:
            counts[self.get_partition(member_id)] += 1
        return counts
