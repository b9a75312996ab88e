import logging

from diabeater.entities import Reward, RewardTemplate
from diabeater.errors import ValidationError
from diabeater.store import collections

logger = logging.getLogger(__name__)

# Once configured, a reward keeps its name; only the amounts change.
EDITABLE_FIELDS = {
    'basic': ('quantity', 'pointsNeeded'),
    'premium': ('discount', 'pointsNeeded'),
}


def _type_filter(reward_type):
    return {'type': reward_type.value} if reward_type else {}


class RewardRepository:

    def __init__(self, documents):
        self.documents = documents

    def get_reward_templates(self, reward_type=None):
        """Rewards an admin can choose from when configuring a new one."""
        records = self.documents.query(collections.REWARD_TEMPLATES, **_type_filter(reward_type))
        return [RewardTemplate.from_record(r) for r in records]

    def get_rewards(self, reward_type=None):
        records = self.documents.query(collections.REWARDS, **_type_filter(reward_type))
        return [Reward.from_record(r) for r in records]

    def get_reward(self, reward_id):
        return Reward.from_record(self.documents.get(collections.REWARDS, reward_id))

    def add_reward(self, reward_type, data):
        record = Reward.from_record({**data, 'type': reward_type.value, 'id': 'new'}).to_record()
        reward_id = self.documents.add(collections.REWARDS, record)
        logger.info(f"Added {reward_type.value} reward {reward_id} '{record.get('name') or record.get('reward')}'")
        return Reward.from_record({**record, 'id': reward_id})

    def update_reward(self, reward_id, data):
        current = self.documents.get(collections.REWARDS, reward_id)
        reward = Reward.from_record(current)
        update = {key: data[key] for key in EDITABLE_FIELDS[reward.type.value] if key in data}
        if not update:
            raise ValidationError(f"Nothing to update. Editable fields: {', '.join(EDITABLE_FIELDS[reward.type.value])}.")
        # Validate the merged record so a bad amount never reaches the store
        merged = Reward.from_record({**current, **update})
        record = self.documents.update(collections.REWARDS, reward_id, merged.to_record())
        return Reward.from_record(record)

    def delete_reward(self, reward_id):
        reward = self.get_reward(reward_id)
        self.documents.delete(collections.REWARDS, reward_id)
        return reward
