"""
Admin configuration of the rewards users redeem points for.

Basic rewards are chosen by name from the template catalogue and given a
quantity; premium rewards give a subscription discount. The same template may
be configured more than once with different amounts.
"""
import logging

from diabeater.entities import RewardType
from diabeater.errors import ValidationError
from diabeater.utils.logging import log_action

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    RewardType.basic: ('name', 'quantity', 'pointsNeeded'),
    RewardType.premium: ('reward', 'discount', 'pointsNeeded'),
}


def parse_reward_type(value, required=True):
    if not value:
        if required:
            raise ValidationError("Reward type is required (basic or premium).")
        return None
    try:
        return RewardType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown reward type '{value}'.")


def list_rewards(repo, reward_type=None):
    return {
        'rewards': repo.get_rewards(reward_type),
        'templates': repo.get_reward_templates(reward_type),
    }


def add_reward(repo, reward_type, data):
    missing = [key for key in REQUIRED_FIELDS[reward_type] if data.get(key) in (None, '')]
    if missing:
        raise ValidationError(f"Missing reward fields: {', '.join(missing)}.")
    reward = repo.add_reward(reward_type, {key: data[key] for key in REQUIRED_FIELDS[reward_type]})
    log_action('Rewards', f"Added {reward.type.value} reward '{reward.name}' ({reward.id})")
    return reward


def update_reward(repo, reward_id, data):
    reward = repo.update_reward(reward_id, data)
    log_action('Rewards', f"Updated {reward.type.value} reward '{reward.name}' ({reward.id})")
    return reward


def delete_reward(repo, reward_id):
    reward = repo.delete_reward(reward_id)
    log_action('Rewards', f"Deleted {reward.type.value} reward '{reward.name}' ({reward.id})")
    return reward
