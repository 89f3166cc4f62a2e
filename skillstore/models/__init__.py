from skillstore.models.skill import Skill, SkillFile, SkillVersion
from skillstore.models.upload_session import UploadSession

__all__ = ["Skill", "SkillFile", "SkillVersion", "UploadSession"]
