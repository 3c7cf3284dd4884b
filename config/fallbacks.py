"""Hardcoded fallback content used when the model's answer is missing or unusable."""

NOT_SPECIFIED = "Not specified in document"
ANALYSIS_ERROR = "Analysis Error"

# Offer letters -------------------------------------------------------------

OFFER_LETTER_RECOMMENDATIONS = [
    "Contact university admissions for detailed guidance on enrollment requirements",
    "Review all documentation provided with your offer letter for important deadlines",
    "Ask the financial aid office about scholarships and payment plans before accepting",
]

OFFER_LETTER_NEXT_STEPS = [
    "Review the offer letter thoroughly, including conditions and fine print",
    "Contact the university for any clarifications needed",
    "Confirm acceptance and deposit deadlines",
]

OFFER_LETTER_COST_STRATEGY = {
    "strategy": "Direct Financial Aid Consultation",
    "description": "Meet the university's financial aid office for personalized funding guidance",
    "potentialSavings": "Varies based on individual circumstances",
    "implementationSteps": [
        "Contact the financial aid office",
        "Schedule a consultation",
        "Prepare your offer letter and financial documents",
    ],
    "timeline": "Within 1-2 weeks of receiving the offer",
    "difficulty": "Low",
}

# Shown when the model answered with something that is not JSON
OFFER_LETTER_DEGRADED_PROFILE = {
    "academicStanding": (
        "Automated analysis could not be completed. Please review your offer letter "
        "for specific academic requirements."
    ),
    "gpa": "GPA requirements are detailed in your offer letter",
    "financialStatus": "Please review the financial sections of your offer letter for cost information",
    "relevantSkills": ["Skills assessment unavailable; review your application materials"],
    "strengths": ["Academic strengths can be evaluated through a direct consultation"],
    "weaknesses": ["Areas for improvement can be discussed with academic advisors"],
    "improvementAreas": ["Discuss preparation for the program with an academic advisor"],
}

# Shown when the model call itself failed
OFFER_LETTER_ERROR_RECOMMENDATIONS = [
    "Analysis could not be completed; please try again later",
    "Contact the university's student services office for help with your offer letter",
]

OFFER_LETTER_ERROR_NEXT_STEPS = [
    "Retry the analysis in a few minutes",
    "Review the offer letter manually for deadlines and conditions",
]

# Visa documents ------------------------------------------------------------

VISA_RECOMMENDATIONS = [
    {
        "title": "Consult a registered migration adviser",
        "description": "Have the decision letter reviewed by a professional before taking further action.",
    },
]

VISA_NEXT_STEPS = [
    {
        "title": "Review the decision letter",
        "description": "Read every condition or reason in the letter and note any deadlines it states.",
    },
]

# Enrollment certificates ---------------------------------------------------

ENROLLMENT_KEY_FINDINGS = [
    {
        "title": "Manual Review Required",
        "description": "This document requires manual review by an education counselor.",
        "importance": "high",
    },
]

ENROLLMENT_RECOMMENDATIONS = [
    {
        "title": "Consult Education Counselor",
        "description": "Schedule a consultation to review this document thoroughly.",
        "priority": "important",
        "category": "preparation",
    },
]

ENROLLMENT_NEXT_STEPS = [
    {
        "step": "Document Review",
        "description": "Have an education counselor review this document for accuracy and completeness.",
        "deadline": "",
        "category": "immediate",
    },
]

# Destination suggestions ---------------------------------------------------

SAMPLE_DESTINATION_ANALYSIS = {
    "executiveSummary": (
        "Based on your academic profile and preferences, we've identified potential "
        "study destinations that align with your goals."
    ),
    "overallMatchScore": 75,
    "topRecommendations": [
        {
            "country": "Canada",
            "countryCode": "CA",
            "matchScore": 85,
            "ranking": 1,
            "personalizedReasons": ["Strong education system", "Post-study work opportunities"],
            "specificAdvantages": ["Pathway to permanent residency", "Diverse academic programs"],
            "potentialChallenges": ["Winter weather conditions", "Competitive admission process"],
            "detailedCostBreakdown": {
                "tuitionFees": {
                    "bachelors": "CAD 25,000-35,000 per year",
                    "masters": "CAD 30,000-45,000 per year",
                    "phd": "CAD 25,000-40,000 per year",
                    "specificProgram": "CAD 30,000 per year",
                },
                "livingExpenses": {
                    "accommodation": "CAD 800-1,500 per month",
                    "food": "CAD 300-500 per month",
                    "transportation": "CAD 100-150 per month",
                    "personalExpenses": "CAD 200-300 per month",
                    "healthInsurance": "CAD 500-800 per year",
                    "totalMonthly": "CAD 1,400-2,450 per month",
                },
                "totalAnnualInvestment": "CAD 42,000-65,000 per year",
                "scholarshipPotential": "Merit-based scholarships available",
                "workStudyEarnings": "CAD 1,000-2,000 per month (part-time)",
            },
            "targetedUniversities": [
                {
                    "name": "University of Toronto",
                    "ranking": "Top 25 globally",
                    "programSpecific": "Computer Science, Engineering",
                    "admissionRequirements": "IELTS 6.5+, strong academics",
                    "scholarshipAvailable": "Merit scholarships up to CAD 10,000",
                },
            ],
            "personalizedVisaGuidance": {
                "successRate": "High approval rate for students",
                "specificRequirements": ["Study permit", "Financial proof", "Health insurance"],
                "timelineForUser": "3-4 months processing",
                "workRights": "20 hours/week during studies",
                "postStudyOptions": "Up to 3-year post-graduation work permit",
            },
            "careerPathway": {
                "industryDemand": "High demand in technology sector",
                "salaryExpectations": "CAD 60,000-80,000 starting salary",
                "careerProgression": "Strong career advancement opportunities",
                "networkingOpportunities": "Active alumni networks",
                "returnOnInvestment": "Positive ROI within 3-5 years",
            },
            "culturalAlignment": {
                "languageSupport": "English-speaking environment",
                "communityPresence": "Large international student community",
                "culturalAdaptation": "Multicultural society",
                "supportSystems": "University support services available",
            },
        },
    ],
    "keyFactors": ["Academic compatibility", "Financial feasibility", "Career prospects"],
    "personalizedInsights": {
        "profileStrengths": ["Strong academic background", "Clear career goals"],
        "specificImprovementAreas": ["Language proficiency", "Financial planning"],
        "tailoredStrategicActions": ["Improve IELTS score", "Research scholarships"],
        "uniqueOpportunities": ["Early application advantages", "Scholarship eligibility"],
    },
    "actionPlan": {
        "immediateActions": [
            {
                "action": "Complete English proficiency test",
                "deadline": "Within 2 months",
                "priority": "High",
                "specificSteps": ["Register for IELTS", "Prepare study materials", "Schedule test"],
                "resources": ["IELTS preparation courses", "Practice tests"],
            },
        ],
        "shortTermGoals": [
            {
                "goal": "Submit university applications",
                "timeline": "3-6 months",
                "milestones": ["Complete applications", "Submit documents"],
                "requirements": ["Transcripts", "Letters of recommendation"],
                "successMetrics": ["Application submission", "Acknowledgment receipt"],
            },
        ],
        "longTermStrategy": [
            {
                "objective": "Secure admission and visa",
                "timeframe": "6-12 months",
                "keyActivities": ["Interview preparation", "Visa application"],
                "dependencies": ["University acceptance", "Financial documentation"],
                "expectedOutcomes": ["Study permit approval", "Program enrollment"],
            },
        ],
    },
    "financialStrategy": {
        "personalizedBudgetPlan": {
            "totalInvestmentRequired": "CAD 150,000-200,000 total program cost",
            "fundingGapAnalysis": "Identify scholarship and work opportunities",
            "cashflowProjection": ["Year 1: CAD 50,000", "Year 2: CAD 45,000"],
        },
        "targetedScholarships": [
            {
                "scholarshipName": "International Student Merit Award",
                "provider": "University",
                "amount": "CAD 10,000",
                "eligibilityMatch": "High academic performance",
                "applicationDeadline": "Varies by institution",
                "competitiveness": "Moderate",
                "applicationStrategy": ["Strong academic record", "Compelling essay"],
            },
        ],
        "costOptimizationStrategies": [
            {
                "strategy": "Part-time work during studies",
                "potentialSavings": "CAD 15,000-20,000 per year",
                "implementationSteps": ["Obtain work permit", "Find suitable employment"],
                "timeline": "After program start",
            },
        ],
    },
    "personalizedTimeline": {
        "preparationPhase": {
            "duration": "3-6 months",
            "keyMilestones": ["Test preparation", "Document collection"],
            "criticalDeadlines": ["Application deadlines", "Test dates"],
        },
        "applicationPhase": {
            "duration": "2-4 months",
            "applicationWindows": ["Fall intake: January-March", "Winter intake: September-November"],
            "documentsRequired": ["Transcripts", "Test scores", "Essays"],
        },
        "decisionPhase": {
            "duration": "2-3 months",
            "evaluationCriteria": ["Program fit", "Financial feasibility"],
            "finalSteps": ["Accept offer", "Apply for visa"],
        },
    },
    "intelligentAlternatives": [
        {
            "country": "Australia",
            "whyBetterForUser": "Similar education quality with a different climate",
            "specificBenefits": ["Year-round pleasant weather", "Strong job market"],
            "matchScore": 80,
            "costAdvantage": "Similar costs with better work opportunities",
            "personalizedRationale": "May suit a preference for a warmer climate",
        },
    ],
    "pathwayPrograms": [
        {
            "programType": "Foundation Program",
            "description": "Academic preparation for university entry",
            "duration": "1 year",
            "costDetails": "CAD 15,000-20,000",
            "specificEntryRequirements": ["High school completion", "IELTS 5.5+"],
            "pathwayToProgram": "Direct entry to undergraduate programs",
            "suitabilityForUser": "Good option if additional preparation is needed",
        },
    ],
}
